"""
Performance tracking middleware for monitoring request/response latency
"""
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.structured_logger import get_logger

logger = get_logger("clinicflow.http")


class PerformanceMiddleware(BaseHTTPMiddleware):
    """
    Logs latency for every request and flags slow ones
    """

    def __init__(self, app, slow_request_ms: float = 1000.0):
        super().__init__(app)
        self.slow_request_ms = slow_request_ms

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        latency_ms = round((time.perf_counter() - start) * 1000, 2)

        fields = dict(
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            latency_ms=latency_ms,
            request_id=getattr(request.state, "request_id", None),
        )
        if latency_ms > self.slow_request_ms:
            logger.warning("Slow request", **fields)
        else:
            logger.info("Request completed", **fields)

        response.headers["X-Process-Time"] = str(latency_ms)
        return response
