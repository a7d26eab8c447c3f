"""
Custom exceptions for service layer.

Provides specific exception types for business logic errors
that can be translated to appropriate HTTP responses.
"""

from typing import Any, Optional


class ServiceError(Exception):
    """Base exception for service layer errors."""
    pass


class NotFoundError(ServiceError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: Any):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} {identifier} not found")


class ValidationError(ServiceError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)


class RecurrenceExpansionError(ServiceError):
    """Raised when persisting a generated occurrence fails.

    Occurrences written before the failure are kept. The root event is
    unaffected, so this error is reported through logging and the
    expansion report rather than raised to the creator of the event.
    """

    def __init__(self, root_guid: str, created: int, requested: int, cause: Exception):
        self.root_guid = root_guid
        self.created = created
        self.requested = requested
        self.cause = cause
        self.message = (
            f"Recurrence expansion for event '{root_guid}' stopped after "
            f"{created} of {requested} occurrences: {cause}"
        )
        super().__init__(self.message)
