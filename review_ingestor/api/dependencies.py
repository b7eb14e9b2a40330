"""Shared FastAPI dependencies."""

from __future__ import annotations

import secrets

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from ..utils.config import get_settings
from ..utils.logging import setup_logger

logger = setup_logger(__name__, context={"component": "ApiAuth"})

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def _is_configured_key(candidate: str, configured: list[str]) -> bool:
    # Every configured key is compared; no short-circuit.
    matches = [secrets.compare_digest(candidate, key) for key in configured]
    return any(matches)


async def require_api_key(x_api_key: str | None = Security(api_key_header)) -> str:
    """
    Guard the review routes with the ``X-API-Key`` header.

    Raises:
        HTTPException: 401 when no keys are configured or the header is
            missing, 403 when the key is not one of ``REVIEWS_API_KEYS``
    """
    configured_keys = get_settings().api_keys
    if not configured_keys:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API authentication is not configured.",
        )

    if x_api_key is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key.",
        )

    if not _is_configured_key(x_api_key, configured_keys):
        logger.warning("Rejected request with an unknown API key", extra={"status": "forbidden"})
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key.",
        )
    return x_api_key
