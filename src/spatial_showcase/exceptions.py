"""Exception classes shared by the services and the API layer.

Every error carries a human-readable ``message`` and the HTTP ``status_code``
the API layer renders it with as ``{"error": message}``.
"""

from __future__ import annotations


class ShowcaseError(Exception):
    """Base class for all expected application errors."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(ShowcaseError):
    """Missing, malformed, forged or expired credential on a required route."""

    status_code = 401
    default_message = "Authentication required"


class Forbidden(ShowcaseError):
    """Valid identity that does not own the resource."""

    status_code = 403
    default_message = "Access denied"


class NotFound(ShowcaseError):
    """Resource or share token absent (expired tokens included)."""

    status_code = 404
    default_message = "Resource not found"


class ValidationFailed(ShowcaseError):
    status_code = 400
    default_message = "Invalid request"


class Conflict(ShowcaseError):
    """Uniqueness violation.

    For share tokens this is retried internally and only escapes as
    :class:`Fatal` once attempts are exhausted.
    """

    status_code = 409
    default_message = "Conflict"


class OperationTimeout(ShowcaseError):
    """A bounded operation exceeded its time budget."""

    status_code = 504
    default_message = "Request timeout"


class Fatal(ShowcaseError):
    """Unrecoverable failure such as retry exhaustion or unreachable storage."""

    status_code = 500
    default_message = "Internal server error"
