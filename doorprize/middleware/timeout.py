import asyncio
import logging
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


def add_timeout_middleware(app: FastAPI, timeout_seconds: float) -> None:
    """Bound how long a single request may hold the server."""

    @app.middleware("http")
    async def request_timeout(request: Request, call_next):
        try:
            return await asyncio.wait_for(call_next(request), timeout=timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(f"Request timed out after {timeout_seconds}s: {request.method} {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
                content={"error": f"Request timed out after {timeout_seconds} seconds"},
            )
