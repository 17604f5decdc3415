"""
Request correlation for the POS API.

Each request carries an ``X-Request-ID`` (taken from the caller, e.g. the
floor tablet, or generated here). The ID is stamped on every log line the
request produces, so an order creation, its stock movements and any
rollback can be read together, and it is echoed back in the response.
"""

import logging
import time
import uuid
from contextvars import ContextVar
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from shared.config.logging import get_logger

logger = get_logger(__name__)

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Reads are too frequent to log one line each
LOGGED_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Bind the request ID for the duration of the request and log writes."""

    HEADER_NAME = "X-Request-ID"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.HEADER_NAME) or str(uuid.uuid4())
        token = request_id_var.set(request_id)
        started = time.perf_counter()

        try:
            request.state.request_id = request_id
            response = await call_next(request)
            response.headers[self.HEADER_NAME] = request_id

            if request.method in LOGGED_METHODS:
                logger.info(
                    "Request completed",
                    method=request.method,
                    path=request.url.path,
                    status=response.status_code,
                    duration_ms=round((time.perf_counter() - started) * 1000, 1),
                )
            return response
        finally:
            request_id_var.reset(token)


class CorrelationIdFilter(logging.Filter):
    """Copies the bound request ID onto log records ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True
