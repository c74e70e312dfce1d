"""
Shared error handling for the inventory service.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class InventoryServiceException(Exception):
    """Base exception for inventory service components."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class StoreUnavailableError(InventoryServiceException):
    """Key-value store could not be reached or rejected the command."""

    def __init__(self, message: str = "Key-value store unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORE_UNAVAILABLE", message, details)


class StoreReadError(InventoryServiceException):
    """A stored payload could not be decoded."""

    def __init__(self, message: str = "Stored value could not be decoded", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORE_READ_ERROR", message, details)


class RateLimitError(InventoryServiceException):
    """Rate limiting errors."""

    def __init__(self, message: str = "Rate limit exceeded", details: Optional[Dict[str, Any]] = None):
        super().__init__("RATE_LIMIT_ERROR", message, details)
