"""
Error taxonomy for the mock test engine.

Every error carries the HTTP status it maps to, so routers and services can
raise them directly and ``main.py`` renders them with a single handler.
"""

from datetime import datetime
from typing import Any, Dict, Optional


class AssessmentError(Exception):
    error_type = "assessment_error"

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.headers = headers
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "type": self.error_type}


class AuthenticationError(AssessmentError):
    """Missing or invalid identity. Not retried; the client should log in."""

    error_type = "authentication_error"

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message, 401, headers={"WWW-Authenticate": "Bearer"})


class PermissionDenied(AssessmentError):
    error_type = "permission_denied"

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, 403)


class NotFound(AssessmentError):
    error_type = "not_found"

    def __init__(self, message: str = "Not found"):
        super().__init__(message, 404)


class AlreadyAttempted(AssessmentError):
    """The user already has a submitted attempt for this test."""

    error_type = "already_attempted"

    def __init__(
        self,
        message: str = "You have already attempted this test",
        previous_attempt: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, 409)
        self.previous_attempt = previous_attempt

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.previous_attempt is not None:
            data["previous_attempt"] = {
                key: value.isoformat() if isinstance(value, datetime) else value
                for key, value in self.previous_attempt.items()
            }
        return data


class InvalidState(AssessmentError):
    """Raised when a transition is requested from the wrong attempt status."""

    error_type = "invalid_state"

    def __init__(self, message: str = "Attempt is not in progress", attempt=None):
        super().__init__(message, 409)
        self.attempt = attempt


class ValidationError(AssessmentError):
    """Malformed answers payload. Nothing is written."""

    error_type = "validation_error"

    def __init__(self, message: str):
        super().__init__(message, 400)


class TransientStoreError(AssessmentError):
    """Storage unavailable. The same call may be retried safely."""

    error_type = "transient_store_error"

    def __init__(self, message: str = "Storage temporarily unavailable"):
        super().__init__(message, 503, headers={"Retry-After": "1"})
