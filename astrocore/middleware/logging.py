import os
import time
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("astrocore.access")


def _enabled() -> bool:
    return os.getenv("LOGGING_ENABLED", "false").lower() == "true"


class LoggingMiddleware(BaseHTTPMiddleware):
    """One ``http_request`` record per request when ``LOGGING_ENABLED=true``."""

    async def dispatch(self, request: Request, call_next):
        if not _enabled():
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "http_request",
            extra={
                "client_ip": request.client.host if request.client else None,
                "http_method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "latency_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )
        return response
