"""Shared exceptions for the Debate Bot API."""
from typing import Any, Dict, Optional


class DebateBotException(Exception):
    """Base exception for Debate Bot API."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class StorageError(DebateBotException):
    """Raised when storage operations fail."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: str = "STORAGE_ERROR",
    ):
        super().__init__(message, error_code, details)


class ExternalServiceError(DebateBotException):
    """Raised when external service calls fail."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: str = "EXTERNAL_SERVICE_ERROR",
    ):
        full_message = f"{service} service error: {message}"
        super().__init__(full_message, error_code, details)
