"""
Session-based authorization code flow.

``AuthorizeMiddleware`` owns the provider callback route and gates every other
request: whitelisted paths pass, logged-in sessions pass, anonymous requests
on fail-fast paths go to the auth error handler (401 by default) and all
remaining anonymous requests are sent to the provider's consent screen. Must
run inside a session middleware (Starlette's ``SessionMiddleware`` or
``RedisSessionMiddleware``).
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional, Sequence

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response
from starlette.types import ASGIApp

from oauth_gate.clients.identity_provider import IdentityProviderClient
from oauth_gate.core.errors import (
    ConfigurationError,
    MissingCodeError,
    NotLoggedInError,
    ProviderDeniedError,
    StaleStateError,
    TokenExchangeError,
)
from oauth_gate.middleware.errors import ErrorHandler, default_error_handler
from oauth_gate.middleware.path_policy import PathConfig, match_path
from oauth_gate.models.oauth import SessionIdentity
from oauth_gate.schemas import OAuthCallbackParams
from oauth_gate.services.auth_context import SessionAuthContext
from oauth_gate.services.user_resolver import UserResolver
from oauth_gate.stores.redirect_state import RedirectStateStore, SessionRedirectStateStore
from oauth_gate.stores.session_identity import SessionIdentityStore
from oauth_gate.utils.forwarded import forwarded_for

logger = logging.getLogger(__name__)


class AuthorizeMiddleware(BaseHTTPMiddleware):
    """Redirect anonymous browser sessions through the provider's login."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        path_configs: Sequence[PathConfig],
        provider: IdentityProviderClient,
        user_resolver: UserResolver,
        state_store: Optional[RedirectStateStore] = None,
        identities: Optional[SessionIdentityStore] = None,
        callback_uri: str = "/oauth2/callback",
        callback_error_handler: Optional[ErrorHandler] = None,
        auth_error_handler: Optional[ErrorHandler] = None,
        config_error_handler: Optional[ErrorHandler] = None,
        x_prefix: str = "",
    ) -> None:
        super().__init__(app)
        self._path_configs = list(path_configs)
        self._provider = provider
        self._user_resolver = user_resolver
        self._state_store = state_store or SessionRedirectStateStore()
        self._identities = identities or SessionIdentityStore()
        self._callback_uri = callback_uri
        self._callback_error_handler = callback_error_handler or default_error_handler(400)
        self._auth_error_handler = auth_error_handler or default_error_handler(401)
        self._config_error_handler = config_error_handler or default_error_handler(500)
        self._x_prefix = x_prefix

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if request.method == "GET" and path == self._callback_uri:
            return await self._handle_callback(request)

        try:
            policy = match_path(self._path_configs, path)
        except ConfigurationError as exc:
            return await self._config_error_handler(exc, request)

        context = SessionAuthContext(request.session, self._identities, self._provider)
        request.state.auth = context
        if policy.whitelist:
            return await call_next(request)

        user_id = context.get_logged_in_user_id()
        if policy.fail_fast:
            if not user_id:
                return await self._auth_error_handler(
                    NotLoggedInError(f"not logged in: path={path}"), request
                )
            return await call_next(request)
        if user_id:
            return await call_next(request)
        return await self._redirect_to_provider(request)

    async def _redirect_to_provider(self, request: Request) -> Response:
        urls = forwarded_for(request, self._x_prefix)
        state_key = str(uuid.uuid4())
        await self._state_store.set(request, state_key, urls.full_url)

        authorize_url = self._provider.build_authorization_url(
            redirect_uri=f"{urls.base_url}{self._callback_uri}",
            state=state_key,
            ui_locales=request.query_params.get("ui_locales"),
        )
        logger.debug("Sending authorization request for %s: url=%s", urls.full_url, authorize_url)
        return RedirectResponse(authorize_url, status_code=302)

    async def _handle_callback(self, request: Request) -> Response:
        query = request.query_params
        params = OAuthCallbackParams(
            code=query.get("code"),
            state=query.get("state"),
            error=query.get("error"),
            error_description=query.get("error_description"),
        )
        logger.debug(
            "Authorization callback: state=%s%s",
            params.state,
            f" error={params.error}" if params.error else "",
        )
        base_url = forwarded_for(request, self._x_prefix).base_url

        try:
            if params.error:
                raise ProviderDeniedError(params.error, params.error_description)
            if not params.code:
                raise MissingCodeError("No code supplied")

            original_url = None
            if params.state:
                original_url = await self._state_store.get(request, params.state)
            if not original_url:
                raise StaleStateError(params.state)

            token_response = await self._provider.exchange_code(
                params.code, f"{base_url}{self._callback_uri}"
            )
            if not token_response.access_token:
                raise TokenExchangeError("No access token in response")
            await self._state_store.delete(request, params.state)

            profile = await self._provider.fetch_profile(token_response.access_token)
            user_id = await self._user_resolver.resolve_or_create_user(profile)

            self._identities.write(
                request.session,
                SessionIdentity.from_token_response(
                    user_id,
                    token_response.access_token,
                    token_response.refresh_token,
                    token_response.expires_in,
                ),
            )
        except Exception as exc:
            # every callback failure is answered by the configured handler
            return await self._callback_error_handler(exc, request)

        target = original_url or "/"
        logger.debug("Redirecting to %s", target)
        return RedirectResponse(target, status_code=302)


__all__ = ["AuthorizeMiddleware"]
