"""
Domain errors.

Services raise these; routers translate them into HTTP responses.
ConfigValidationError has an app-level handler (see main.py).
"""

from typing import Optional


class ParseError(ValueError):
    """Malformed "HH:MM" time string."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid time {value!r}, expected HH:MM")


class ConfigValidationError(ValueError):
    """Malformed or inconsistent business-hours configuration."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)


class ExternalProviderError(RuntimeError):
    """Subscription provider failed: network, non-200 or malformed body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(LookupError):
    pass


class PremiumRequiredError(PermissionError):
    def __init__(self, message: str = "Premium access required"):
        super().__init__(message)


class UploadError(ValueError):
    """Rejected upload: missing file, disallowed type or too large."""


class EbookUnavailableError(Exception):
    """E-book exists but is deactivated."""


class AppointmentError(ValueError):
    """Requested appointment or status change is not allowed."""
