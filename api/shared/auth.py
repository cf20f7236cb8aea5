"""Shared-credential check for API routes."""
import secrets
from typing import Optional

from fastapi import Header, HTTPException

from core.settings import SETTINGS

INVALID_API_KEY = "Invalid API key. Use header: x-api-key"


async def require_api_key(
    x_api_key: Optional[str] = Header(default=None, alias="x-api-key"),
) -> None:
    """Reject requests whose ``x-api-key`` does not match ``API_KEY``.

    The check is disabled when no API key is configured.
    """
    expected = SETTINGS.AUTH.API_KEY.get_secret_value()
    if not expected:
        return
    if not x_api_key or not secrets.compare_digest(
        x_api_key.encode(), expected.encode()
    ):
        raise HTTPException(status_code=401, detail=INVALID_API_KEY)
