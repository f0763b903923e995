from __future__ import annotations

from typing import Any, Dict, Optional


class BaseAPIException(Exception):
    """Base exception for all API errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class AuthenticationError(BaseAPIException):
    """Authentication failed."""
    def __init__(self, message: str = "Authentication failed", **kwargs):
        super().__init__(message, status_code=401, **kwargs)


class NotFoundError(BaseAPIException):
    """Resource not found."""
    def __init__(self, message: str = "Resource not found", **kwargs):
        super().__init__(message, status_code=404, **kwargs)


class ValidationError(BaseAPIException):
    """Submitted data failed validation.

    ``details["errors"]`` carries one entry per offending field.
    """
    def __init__(self, message: str = "Validation error", **kwargs):
        super().__init__(message, status_code=400, **kwargs)


class ServerError(BaseAPIException):
    """Unexpected server-side failure."""
    def __init__(self, message: str = "Server error", **kwargs):
        super().__init__(message, status_code=500, **kwargs)


class DatabaseError(ServerError):
    """Database error."""
    def __init__(self, message: str = "Database error", **kwargs):
        super().__init__(message, **kwargs)


class StorageError(BaseAPIException):
    """Remote media storage rejected or failed an upload."""
    def __init__(self, message: str = "Storage error", **kwargs):
        super().__init__(message, status_code=500, **kwargs)


class UpstreamUnavailable(BaseAPIException):
    """The vehicle registry could not produce a usable answer."""
    def __init__(self, message: str = "Upstream service unavailable", **kwargs):
        super().__init__(message, status_code=502, **kwargs)
