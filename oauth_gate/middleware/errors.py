"""Error handlers deciding the HTTP response for a failed authentication."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[Exception, Request], Awaitable[Response]]


def default_error_handler(status_code: int) -> ErrorHandler:
    """Build a handler that logs the error and answers ``Error`` with ``status_code``."""

    async def handler(error: Exception, request: Request) -> Response:
        logger.error(
            "Error %s on %s %s: %s",
            status_code,
            request.method,
            request.url.path,
            error,
        )
        return PlainTextResponse("Error", status_code=status_code)

    return handler


__all__ = ["ErrorHandler", "default_error_handler"]
