"""Domain errors raised by the services layer.

Every service operation either completes all of its writes or raises one of
these with the session rolled back. Routers turn them into HTTP responses with
``to_http_exception``.
"""
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status


class InzoziError(Exception):
    """Base class for savings-and-loans domain errors."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(InzoziError):
    """Malformed or out-of-range input (bad amount, empty text, overpayment)."""
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(InzoziError):
    """Referenced entity does not exist."""
    status_code = status.HTTP_404_NOT_FOUND


class InvalidStateError(InzoziError):
    """Entity is in a state that forbids the operation."""
    status_code = status.HTTP_409_CONFLICT


class PersistenceError(InzoziError):
    """The database rejected a read or write."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class PartialWriteError(PersistenceError):
    """A multi-step write failed after its first step was staged."""

    def __init__(self, message: str, loan_id: Optional[UUID] = None):
        super().__init__(message)
        self.loan_id = loan_id


def to_http_exception(exc: InzoziError) -> HTTPException:
    if isinstance(exc, PartialWriteError):
        detail = f"{exc.message}. Loan {exc.loan_id} needs manual reconciliation."
    elif isinstance(exc, PersistenceError):
        detail = "The operation could not be saved. Please try again."
    else:
        detail = exc.message
    return HTTPException(status_code=exc.status_code, detail=detail)
