"""
Domain exceptions mapped to HTTP error responses in main.py
"""

from typing import Any, Optional


class WeddingError(Exception):
    """Base error carrying the HTTP status it should surface as"""

    status_code = 500
    error_code = "internal_error"

    def __init__(self, message: str, details: Any = None, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if error_code:
            self.error_code = error_code


class ValidationFailed(WeddingError):
    status_code = 400
    error_code = "validation_failed"


class Unauthorized(WeddingError):
    status_code = 401
    error_code = "unauthorized"


class NotFound(WeddingError):
    status_code = 404
    error_code = "not_found"

    def __init__(self, resource: str = "Resource", message: Optional[str] = None):
        super().__init__(message or f"{resource} not found")


class DuplicateGuestError(WeddingError):
    status_code = 400
    error_code = "duplicate_guest"

    def __init__(self):
        super().__init__("A guest with this phone number already exists")


class CapacityExceededError(WeddingError):
    status_code = 409
    error_code = "capacity_exceeded"


class RateLimited(WeddingError):
    status_code = 429
    error_code = "rate_limited"

    def __init__(self):
        super().__init__("Rate limit exceeded. Please try again later.")


class ConfigurationError(WeddingError):
    status_code = 500
    error_code = "configuration_error"


class MessagingConfigError(ConfigurationError):
    error_code = "messaging_not_configured"
