"""
Per-request context: database deadline and access log.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Awaitable, Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from core import db

logger = logging.getLogger("monori.requests")


class RequestContextMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, *, timeout_s: float) -> None:
        super().__init__(app)
        self.timeout_s = timeout_s

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Any]]):
        started = time.perf_counter()
        with db.deadline(self.timeout_s):
            response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        target = request.url.path
        if request.url.query:
            target = f"{target}?{request.url.query}"
        logger.info(
            'Request made to "%s %s" with status code %s (~%.2fms) | User-Agent: %s',
            request.method,
            target,
            response.status_code,
            elapsed_ms,
            request.headers.get("user-agent") or "None Set",
        )
        return response
