"""Per-request deadline.

The handler runs as a task under asyncio.wait_for; on expiry it is cancelled (the open
session closes and its transaction rolls back) and the caller gets 504.
X-Request-Timeout (seconds) overrides the default, capped at the configured maximum.
"""

import asyncio
import logging
from typing import Optional

from fastapi import status
from fastapi.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.core.config import settings

logger = logging.getLogger(__name__)

TIMEOUT_HEADER = b"x-request-timeout"


def _requested_timeout(scope: Scope) -> Optional[float]:
    for name, value in scope.get("headers", []):
        if name.lower() == TIMEOUT_HEADER:
            try:
                seconds = float(value.decode("latin-1"))
            except ValueError:
                return None
            return seconds if seconds > 0 else None
    return None


class RequestTimeoutMiddleware:
    def __init__(
        self,
        app: ASGIApp,
        default_timeout: Optional[float] = None,
        max_timeout: Optional[float] = None,
    ) -> None:
        self.app = app
        self.default_timeout = default_timeout or settings.request_timeout_seconds
        self.max_timeout = max_timeout or settings.max_request_timeout_seconds

    def timeout_for(self, scope: Scope) -> float:
        requested = _requested_timeout(scope)
        if requested is None:
            return self.default_timeout
        return min(requested, self.max_timeout)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        timeout = self.timeout_for(scope)
        response_started = False

        async def send_tracking(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await asyncio.wait_for(self.app(scope, receive, send_tracking), timeout)
        except asyncio.TimeoutError:
            logger.warning("%s %s timed out after %.2fs", scope.get("method"), scope.get("path"), timeout)
            if response_started:
                raise
            response = JSONResponse(
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
                content={"detail": "Request timed out"},
            )
            await response(scope, receive, send)
