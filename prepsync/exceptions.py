"""Exception hierarchy for prepsync."""

from __future__ import annotations


class PrepSyncError(Exception):
    """Base class for all prepsync errors."""


class ReviewValidationError(PrepSyncError, ValueError):
    """Raised when a review rating is outside the accepted range."""


class CurriculumConfigError(PrepSyncError):
    """Raised when the static curriculum tables are inconsistent (e.g. a cycle)."""


class ClientRequestError(PrepSyncError):
    """
    A request the server rejected as malformed or unauthorized.

    Never retried by the gateway.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class RequestCancelledError(PrepSyncError):
    """Raised when the caller signalled it no longer wants the result."""

    def __init__(self, request_id: str):
        super().__init__(f"Request cancelled: {request_id}")
        self.request_id = request_id
