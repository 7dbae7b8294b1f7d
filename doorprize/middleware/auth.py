import secrets
import logging
from fastapi import HTTPException, status, Request
from typing import Optional

logger = logging.getLogger(__name__)

ACCESS_DENIED = "Access denied. You do not have permission to perform this operation."


def require_api_key(request: Request) -> None:
    """
    Dependency guarding write endpoints with the shared x-api-key secret.

    Only the x-api-key header is accepted.
    """
    token = request.headers.get("x-api-key")
    settings = request.app.state.settings

    logger.info(
        f"[AUTH] {request.method} {request.url.path} has_token={bool(token)} "
        f"remote_ip={get_request_ip(request)}"
    )

    if not token or not secrets.compare_digest(token.encode("utf-8"), settings.API_SECRET_KEY.encode("utf-8")):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=ACCESS_DENIED,
        )


def get_request_ip(request: Request) -> Optional[str]:
    """Get client IP address from request"""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    return request.client.host if request.client else None
