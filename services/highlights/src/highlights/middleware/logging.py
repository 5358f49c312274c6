"""
Request logging middleware for the CorporaViewer highlights service.

Logs every request once its response has been fully sent, so streamed
highlight responses are logged with their total duration and the number
of body bytes delivered rather than the time to first byte.
"""

from __future__ import annotations

import time

import structlog
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = structlog.get_logger(__name__)


class LoggingMiddleware:
    """Log every HTTP request with method, path, status, size, and latency."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start = time.monotonic()
        status = 500
        body_bytes = 0

        async def send_wrapper(message: Message) -> None:
            nonlocal status, body_bytes
            if message["type"] == "http.response.start":
                status = message["status"]
            elif message["type"] == "http.response.body":
                body_bytes += len(message.get("body", b""))
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            logger.info(
                "http_request",
                method=scope.get("method"),
                path=scope.get("path"),
                status=status,
                body_bytes=body_bytes,
                duration_ms=round((time.monotonic() - start) * 1000, 2),
            )
