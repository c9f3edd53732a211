"""Request timing logger."""

from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

logger = logging.getLogger("oauth_gate.server.timing")


class TimingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, *, show_cookies: bool = False) -> None:
        super().__init__(app)
        self._show_cookies = show_cookies

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        target = request.url.path
        if request.url.query:
            target = f"{target}?{request.url.query}"
        cookie = request.headers.get("cookie")
        cookie_msg = f" cookie={cookie}" if self._show_cookies and cookie else ""

        logger.debug("STARTED: %s %s%s", request.method, target, cookie_msg)
        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = int((time.perf_counter() - started) * 1000)
        logger.debug("COMPLETED in %sms: %s %s", duration_ms, request.method, target)
        return response


__all__ = ["TimingMiddleware"]
