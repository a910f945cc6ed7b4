"""
Shared-secret authentication for sync trigger endpoints.

Sync runs are triggered by a cron job or an admin, never by end users. The
caller proves it holds SYNC_SECRET with either header:

    Authorization: Bearer <SYNC_SECRET>
    X-Sync-Secret: <SYNC_SECRET>
"""
import hmac
from typing import Optional

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader
from starlette.requests import Request

from parlay_sync.core.config import settings
from parlay_sync.core.logging import get_logger

logger = get_logger(__name__)

SYNC_SECRET_HEADER = "X-Sync-Secret"

authorization_header = APIKeyHeader(name="Authorization", auto_error=False)
sync_secret_header = APIKeyHeader(name=SYNC_SECRET_HEADER, auto_error=False)


def _extract_secret(authorization: Optional[str], sync_secret: Optional[str]) -> Optional[str]:
    if sync_secret:
        return sync_secret
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip()
    return None


def verify_sync_secret(
    request: Request,
    authorization: Optional[str] = Security(authorization_header),
    sync_secret: Optional[str] = Security(sync_secret_header),
) -> str:
    """
    Validate the sync secret from request headers.

    Returns:
        The caller label used in logs ("sync-secret" or "_dev_skip_")

    Raises:
        HTTPException: 401 when the secret is missing, 403 when it is wrong,
            503 when no secret is configured in production
    """
    if not settings.SYNC_SECRET:
        if settings.is_production():
            logger.error("SYNC_SECRET not configured in production - rejecting sync request")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Sync endpoint disabled. Configure SYNC_SECRET environment variable."
            )
        logger.debug("SYNC_SECRET not configured - allowing request in development mode")
        return "_dev_skip_"

    provided = _extract_secret(authorization, sync_secret)
    if not provided:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Sync secret missing. Provide Authorization: Bearer or {SYNC_SECRET_HEADER} header."
        )

    if not hmac.compare_digest(provided.encode(), settings.SYNC_SECRET.encode()):
        logger.warning(f"Invalid sync secret from {request.client.host if request.client else 'unknown'}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid sync secret."
        )

    return "sync-secret"
