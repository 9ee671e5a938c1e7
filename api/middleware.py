"""
Request logging middleware: one line per request with status and duration.
"""
import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("companion-api.http")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("%s %s failed", request.method, request.url.path)
            raise
        duration_ms = int((time.perf_counter() - started) * 1000)
        logger.info(
            "%s %s %d %dms",
            request.method, request.url.path, response.status_code, duration_ms,
        )
        response.headers["X-Process-Time-Ms"] = str(duration_ms)
        return response
