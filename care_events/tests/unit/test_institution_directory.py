"""
Unit tests for InstitutionDirectory.
"""

import pytest

from care_events.src.services.exceptions import NotFoundError
from care_events.src.services.institution_directory import InstitutionDirectory


@pytest.fixture
def directory(test_db_session):
    return InstitutionDirectory(test_db_session)


class TestInstitutionDirectory:
    """Tests for institution lookup."""

    def test_get_by_guid(self, directory, sample_institution):
        institution = sample_institution()

        assert directory.get_by_guid(institution.guid).id == institution.id

    def test_get_institution_name(self, directory, sample_institution):
        institution = sample_institution(name='Maple House')

        assert directory.get_institution_name(institution.guid) == 'Maple House'

    @pytest.mark.parametrize("guid", [
        'ins_00000000000000000000000000',
        'evt_00000000000000000000000000',
        'garbage',
    ])
    def test_unknown_institution(self, directory, guid):
        with pytest.raises(NotFoundError) as exc_info:
            directory.get_institution_name(guid)

        assert exc_info.value.resource == 'Institution'
