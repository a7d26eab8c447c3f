"""
Institution lookup.

The event engine needs two things from institution master data: resolving
a caller-facing GUID to the owning row, and the institution's name for the
default event location.
"""

from sqlalchemy.orm import Session

from care_events.src.models import Institution
from care_events.src.services.exceptions import NotFoundError
from care_events.src.services.guid import GuidService


class InstitutionDirectory:
    """
    Read-only access to institutions.

    Usage:
        >>> directory = InstitutionDirectory(db_session)
        >>> institution = directory.get_by_guid("ins_01hgw2bbg...")
        >>> directory.get_institution_name("ins_01hgw2bbg...")
        'Sunrise Care Home'
    """

    def __init__(self, db: Session):
        self.db = db

    def get_by_guid(self, guid: str) -> Institution:
        """
        Get an institution by GUID.

        Raises:
            NotFoundError: If the GUID is malformed or unknown
        """
        try:
            uuid_value = GuidService.parse_guid(guid, "ins")
        except ValueError:
            raise NotFoundError("Institution", guid)

        institution = (
            self.db.query(Institution)
            .filter(Institution.uuid == uuid_value)
            .first()
        )
        if not institution:
            raise NotFoundError("Institution", guid)
        return institution

    def get_institution_name(self, guid: str) -> str:
        """Display name of an institution, used as the default event location."""
        return self.get_by_guid(guid).name
