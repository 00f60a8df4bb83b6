"""
Application errors. Routes raise these; handlers in main.py render them as
{"error": <kind>, "message"?: str, "details"?: list} with the matching status code.
"""
from typing import Any


class SmansysError(Exception):
    """Base for errors that map to an HTTP response."""

    status_code: int = 500
    error: str = "Internal Server Error"

    def __init__(self, message: str | None = None, *, error: str | None = None, details: list[Any] | None = None):
        self.message = message
        self.details = details
        if error is not None:
            self.error = error
        super().__init__(message or self.error)

    def to_dict(self) -> dict:
        body: dict[str, Any] = {"error": self.error}
        if self.message is not None:
            body["message"] = self.message
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationFailed(SmansysError):
    """Client input violates a shape or constraint."""

    status_code = 400
    error = "Validation Error"


class Conflict(SmansysError):
    """Duplicate unique key (email, roll number). Reported as 400 with a friendly message."""

    status_code = 400
    error = "Conflict"


class AuthenticationFailed(SmansysError):
    """Missing, malformed or expired token; bad credentials; disabled account."""

    status_code = 401
    error = "Unauthorized"


class PermissionDenied(SmansysError):
    """Valid identity without a required role."""

    status_code = 403
    error = "Forbidden"


class NotFound(SmansysError):
    status_code = 404
    error = "Not Found"
