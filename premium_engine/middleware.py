"""
Middleware for request timing and request IDs.
"""

import time
import uuid
import logging
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from premium_engine.settings import get_settings

settings = get_settings()

# Configure structured logging
logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("premium_engine")

QUOTE_PATH = "/v1/quotes"


class PerformanceMiddleware(BaseHTTPMiddleware):
    """
    Middleware to time requests and tag them with a request ID.

    Features:
    - Adds X-Request-ID header (uses the provided value or generates a UUID)
    - Adds X-Response-Time-Ms header
    - Logs request start, completion and failure
    - Warns when a quote request exceeds the slow-quote threshold
    """

    def __init__(self, app: ASGIApp, slow_quote_ms: float = settings.slow_quote_ms):
        super().__init__(app)
        self.slow_quote_ms = slow_quote_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        # Store request ID in request state for access by endpoints
        request.state.request_id = request_id

        start_time = time.perf_counter()

        logger.info(
            f"Request started | "
            f"request_id={request_id} | "
            f"method={request.method} | "
            f"path={request.url.path}"
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"Request failed | "
                f"request_id={request_id} | "
                f"method={request.method} | "
                f"path={request.url.path} | "
                f"duration_ms={duration_ms:.2f} | "
                f"error={str(e)}"
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000

        logger.info(
            f"Request completed | "
            f"request_id={request_id} | "
            f"method={request.method} | "
            f"path={request.url.path} | "
            f"status={response.status_code} | "
            f"duration_ms={duration_ms:.2f}"
        )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"

        if duration_ms > self.slow_quote_ms and request.url.path == QUOTE_PATH:
            logger.warning(
                f"Slow quote request | "
                f"request_id={request_id} | "
                f"duration_ms={duration_ms:.2f} | "
                f"threshold_ms={self.slow_quote_ms:.0f}"
            )

        return response
