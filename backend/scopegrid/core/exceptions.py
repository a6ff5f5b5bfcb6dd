"""
Application Exceptions: one class per failure kind, each carrying its HTTP status
"""
from typing import Any, Optional

from fastapi import status


class ScopeGridError(Exception):
    """Base exception for every expected failure raised by services."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: Optional[Any] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.detail = detail
        super().__init__(self.message)


class Unauthenticated(ScopeGridError):
    """Missing, malformed, expired or forged credential."""

    def __init__(self, message: str = "Unauthorized", detail: Optional[Any] = None):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED, detail)


class Forbidden(ScopeGridError):
    """Authenticated, but lacking the permission, grant or ownership required."""

    def __init__(self, message: str = "Access denied", detail: Optional[Any] = None):
        super().__init__(message, status.HTTP_403_FORBIDDEN, detail)


class NotFound(ScopeGridError):
    def __init__(self, message: str = "Not found", detail: Optional[Any] = None):
        super().__init__(message, status.HTTP_404_NOT_FOUND, detail)


class ValidationError(ScopeGridError):
    def __init__(self, message: str = "Invalid request", detail: Optional[Any] = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, detail)


class ExecutionError(ScopeGridError):
    """Persistence failure. `detail` is an opaque reference, never the driver error."""

    def __init__(self, message: str = "Error fetching data", detail: Optional[Any] = None):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, detail)
