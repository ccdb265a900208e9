"""Request logging middleware and logging setup"""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("vaultsync.api")

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """
    Logs one line per request with a short request id and latency, and
    returns the id in the ``X-Request-ID`` header.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())[:8]
        start_time = time.perf_counter()
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception as e:
            latency_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "[%s] %s %s -> 500 (%.2fms) ERROR: %s",
                request_id, request.method, request.url.path, latency_ms, e,
            )
            raise

        latency_ms = (time.perf_counter() - start_time) * 1000
        status_code = response.status_code
        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO
        logger.log(
            level,
            "[%s] %s %s -> %d (%.2fms)",
            request_id, request.method, request.url.path, status_code, latency_ms,
        )

        response.headers["X-Request-ID"] = request_id
        return response


def setup_logging(log_level: str = "INFO") -> None:
    """Configure root logging format"""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
