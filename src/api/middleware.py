"""Request middleware: access logging and response hardening headers."""

from __future__ import annotations

import time

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

SLOW_REQUEST_MS = 1500


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Log every request with its latency and tag the response with it."""

    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        started = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        response.headers["X-Response-Time-Ms"] = f"{elapsed_ms:.1f}"
        response.headers["X-Content-Type-Options"] = "nosniff"

        line = f"[API] {request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.0f}ms)"
        if elapsed_ms >= SLOW_REQUEST_MS:
            logger.warning(line)
        else:
            logger.debug(line)
        return response
