"""Error taxonomy for the contact API.

Each error knows the HTTP status and JSON payload it maps to, so the
exception handlers in ``contact_api.main`` stay uniform.
"""

from __future__ import annotations

from typing import Any, Optional


class ContactAPIError(Exception):
    """Base class for errors rendered as ``{success: false, error: ...}``."""

    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.public_message)

    def payload(self) -> dict[str, Any]:
        return {"success": False, "error": self.public_message}

    def headers(self) -> dict[str, str]:
        return {}


class ValidationError(ContactAPIError):
    """Client input is malformed."""

    status_code = 400
    public_message = "Validation failed"

    def __init__(self, details: list[dict[str, str]]):
        super().__init__(self.public_message)
        self.details = details

    def payload(self) -> dict[str, Any]:
        return {"success": False, "error": self.public_message, "details": self.details}


class RateLimitError(ContactAPIError):
    """Client exceeded the request budget for the current window."""

    status_code = 429

    def __init__(self, message: str, limit: int, reset_after: float):
        super().__init__(message)
        self.public_message = message
        self.limit = limit
        self.reset_after = reset_after

    def headers(self) -> dict[str, str]:
        reset = str(max(int(self.reset_after + 0.999), 0))
        return {
            "Retry-After": reset,
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": "0",
            "RateLimit-Reset": reset,
        }


class PersistenceError(ContactAPIError):
    """The submission store could not read or write a record.

    The underlying cause is logged; the caller only sees a generic 500.
    """

    status_code = 500


class NotificationError(ContactAPIError):
    """The notification email could not be delivered.

    Recorded on the submission and logged, never rendered to the caller.
    """

    status_code = 502
    public_message = "Notification failed"
