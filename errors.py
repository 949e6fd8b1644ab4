"""
Error taxonomy for the storefront API.

Every class maps to one HTTP status. Handlers in main.py turn them into the
uniform ``{error, message, ...context}`` body.
"""
from typing import Any, Dict, Optional


class StorefrontError(Exception):
    status_code = 500
    error = "Internal server error"
    redact_outside_development = False
    redacted_message = "Internal server error"

    def __init__(self, message: str, error: Optional[str] = None, **context: Any):
        super().__init__(message)
        self.message = message
        if error is not None:
            self.error = error
        self.context = context

    def to_dict(self, expose: bool = True) -> Dict[str, Any]:
        message = self.message
        if self.redact_outside_development and not expose:
            message = self.redacted_message
        return {"error": self.error, "message": message, **self.context}


class InvalidInputError(StorefrontError):
    status_code = 400
    error = "Validation failed"


class NotFoundError(StorefrontError):
    status_code = 404
    error = "Not found"


class StockError(StorefrontError):
    status_code = 400
    error = "Insufficient stock"


class UpstreamUnavailable(StorefrontError):
    status_code = 503
    error = "Service temporarily unavailable"
    redact_outside_development = True
    redacted_message = "Unable to connect to the data source. Please try again later."
