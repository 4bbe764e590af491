# backend/mentora/core/exceptions.py
"""
Domain-specific exceptions for the Mentora booking engine.

The scheduling and cancellation engines report rule violations as structured
result values. These exceptions are raised only at the seams: malformed input
handed to a builder, misuse of a session template, or a storage collaborator
refusing an operation. Each one converts to the HTTP error a transport layer
would send.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

from .enums import OutcomeFailure


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when input cannot be accepted as given."""

    status_code = status.HTTP_400_BAD_REQUEST


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class ForbiddenException(DomainException):
    """Raised when the caller lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class BookingConflictException(ConflictException):
    """Raised by storage when a confirmed booking already holds the interval."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This time slot conflicts with an existing booking",
            code="BOOKING_CONFLICT",
            details=details or {},
        )


class RepositoryException(Exception):
    """
    Raised by storage collaborators when data access fails.

    Services translate it into a structured failure instead of letting it
    escape to the caller.
    """


_FAILURE_STATUS = {
    OutcomeFailure.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    OutcomeFailure.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    OutcomeFailure.NOT_ELIGIBLE: status.HTTP_400_BAD_REQUEST,
    OutcomeFailure.UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def failure_status_code(failure: Optional[OutcomeFailure]) -> int:
    """Map a refused cancellation/modification outcome to an HTTP status code."""
    if failure is None:
        return status.HTTP_200_OK
    return _FAILURE_STATUS[failure]
