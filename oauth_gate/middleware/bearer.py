"""
Stateless bearer-token authentication.

Every request carrying a token is validated by downloading the provider
profile and resolving the local user; nothing is cached between requests.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from oauth_gate.clients.identity_provider import IdentityProviderClient
from oauth_gate.core.errors import ConfigurationError, MissingTokenError
from oauth_gate.middleware.errors import ErrorHandler, default_error_handler
from oauth_gate.middleware.path_policy import PathConfig, match_path
from oauth_gate.services.auth_context import BearerAuthContext
from oauth_gate.services.user_resolver import UserResolver

logger = logging.getLogger(__name__)


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Return the token of an ``Authorization: Bearer`` header, or ``""``."""
    header = (authorization or "").strip()
    if header.lower().startswith("bearer "):
        return header[len("bearer "):].strip()
    return ""


class BearerMiddleware(BaseHTTPMiddleware):
    """Authenticate API requests by their provider-issued bearer token."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        path_configs: Sequence[PathConfig],
        provider: IdentityProviderClient,
        user_resolver: UserResolver,
        auth_error_handler: Optional[ErrorHandler] = None,
        config_error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        super().__init__(app)
        self._path_configs = list(path_configs)
        self._provider = provider
        self._user_resolver = user_resolver
        self._auth_error_handler = auth_error_handler or default_error_handler(401)
        self._config_error_handler = config_error_handler or default_error_handler(500)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        try:
            policy = match_path(self._path_configs, path)
        except ConfigurationError as exc:
            return await self._config_error_handler(exc, request)

        token = extract_bearer_token(request.headers.get("authorization"))
        if not policy.whitelist and not token:
            return await self._auth_error_handler(
                MissingTokenError("No bearer/access token supplied"), request
            )

        user_id: Optional[str] = None
        if token:
            try:
                profile = await self._provider.fetch_profile(token)
                user_id = await self._user_resolver.resolve_or_create_user(profile)
            except Exception as exc:
                return await self._auth_error_handler(exc, request)

        request.state.auth = BearerAuthContext(user_id, token)
        return await call_next(request)


__all__ = ["BearerMiddleware", "extract_bearer_token"]
