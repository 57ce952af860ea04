"""FastAPI adapter – RequestLoggingMiddleware."""
from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware:
    """Log every HTTP request with its client address, status and latency."""

    def __init__(self, app: "ASGIApp") -> None:
        self.app = app

    async def __call__(self, scope: "Scope", receive: "Receive", send: "Send") -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "GET")
        url = scope.get("path", "")
        if scope.get("query_string"):
            url = f"{url}?{scope['query_string'].decode('latin-1')}"
        client = scope.get("client")
        remote = f"{client[0]}:{client[1]}" if client else "unknown"
        logger.info("http.request method=%s url=%s client=%s", method, url, remote)

        start = time.perf_counter()
        status_code: list[int] = [500]

        async def send_capturing(message: Any) -> None:
            if message["type"] == "http.response.start":
                status_code[0] = message.get("status", 200)
            await send(message)

        try:
            await self.app(scope, receive, send_capturing)
        finally:
            elapsed = (time.perf_counter() - start) * 1000
            logger.debug(
                "http.response method=%s url=%s status=%d elapsed_ms=%.1f",
                method,
                url,
                status_code[0],
                elapsed,
            )


__all__ = ["RequestLoggingMiddleware"]
