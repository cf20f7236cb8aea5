"""Exceptions for the Debate feature.

Format errors and unknown conversations are not exceptions: they are returned
as ``DebateOutcome`` values by the service. Only the store and the generation
backend raise.
"""
from typing import Any, Dict, Optional

from api.shared.exceptions import ExternalServiceError, StorageError


class StoreUnavailableError(StorageError):
    """Raised when the conversation store cannot be reached or read."""

    def __init__(
        self,
        operation: str,
        conversation_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        message = f"Conversation store unavailable during '{operation}'"
        error_details: Dict[str, Any] = {"operation": operation}
        if conversation_id:
            error_details["conversation_id"] = conversation_id
        if details:
            error_details.update(details)
        super().__init__(message, error_details, "STORE_UNAVAILABLE")


class BackendFailureError(ExternalServiceError):
    """Raised when the generation backend fails or returns unusable content."""

    def __init__(
        self, message: str, model: str, details: Optional[Dict[str, Any]] = None
    ):
        error_details: Dict[str, Any] = {"model": model}
        if details:
            error_details.update(details)
        super().__init__("generation", message, error_details, "BACKEND_FAILURE")
