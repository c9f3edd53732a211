"""
Application factory wiring the OAuth2 middleware stack onto FastAPI.

Run with ``uvicorn --factory oauth_gate.main:create_app``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, List, Optional

import redis.asyncio as redis
from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from oauth_gate.api.routes import router as api_router
from oauth_gate.clients import (
    IdentityProviderClient,
    SQLiteUserStore,
    create_http_client,
    create_redis_client,
)
from oauth_gate.core.config import AppSettings, get_settings
from oauth_gate.core.logging import configure_logging
from oauth_gate.middleware import (
    AuthorizeMiddleware,
    BearerMiddleware,
    RedisSessionMiddleware,
    TimingMiddleware,
    path_configs_from_settings,
)
from oauth_gate.services import TokenCipherService, UserResolver
from oauth_gate.stores import (
    RedirectStateStore,
    RedisRedirectStateStore,
    SessionIdentityStore,
    SessionRedirectStateStore,
)

logger = logging.getLogger(__name__)


def _build_state_store(
    settings: AppSettings,
    shared_redis: Callable[[], redis.Redis],
) -> RedirectStateStore:
    if settings.oauth2.state_store == "session":
        return SessionRedirectStateStore(
            ttl_seconds=settings.oauth2.state_ttl_seconds,
            max_entries=settings.oauth2.state_max_pending,
        )
    return RedisRedirectStateStore(
        shared_redis(),
        ttl_seconds=settings.oauth2.state_ttl_seconds,
        key_prefix=settings.redis.key_prefix,
    )


def _add_session_middleware(
    app: FastAPI,
    settings: AppSettings,
    shared_redis: Callable[[], redis.Redis],
) -> None:
    session = settings.session
    if session.backend == "redis":
        app.add_middleware(
            RedisSessionMiddleware,
            client=shared_redis(),
            secret_key=session.secret,
            session_cookie=session.cookie_name,
            key_prefix=session.key_prefix,
            max_age=session.max_age,
            same_site=session.same_site,
            https_only=session.https_only,
        )
        return
    app.add_middleware(
        SessionMiddleware,
        secret_key=session.secret,
        session_cookie=session.cookie_name,
        max_age=session.max_age,
        same_site=session.same_site,
        https_only=session.https_only,
    )


def create_app(
    settings: Optional[AppSettings] = None,
    *,
    provider: Optional[IdentityProviderClient] = None,
    user_resolver: Optional[UserResolver] = None,
    redis_client: Optional[redis.Redis] = None,
) -> FastAPI:
    """Factory for the FastAPI application.

    Collaborators that are not supplied are built from ``settings`` and closed
    when the application shuts down.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    closers: List[Callable[[], Awaitable[None]]] = []

    if provider is None:
        http_client = create_http_client(settings.oauth2)
        closers.append(http_client.aclose)
        provider = IdentityProviderClient(settings.oauth2, http_client)

    if user_resolver is None:
        user_store = SQLiteUserStore(settings.user_db_path)
        user_resolver = UserResolver(
            user_store, update_user=user_store.update_user_from_oauth_profile
        )

    def shared_redis() -> redis.Redis:
        nonlocal redis_client
        if redis_client is None:
            redis_client = create_redis_client(settings.redis)
            closers.append(redis_client.aclose)
        return redis_client

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        for close in closers:
            await close()

    app = FastAPI(
        title="OAuth Gate",
        version="0.1.0",
        description="OAuth2 authorization code front door for HTTP services.",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.include_router(api_router, prefix="/api")

    path_configs = path_configs_from_settings(settings.auth_path_configs)
    if settings.auth_mode == "bearer":
        app.add_middleware(
            BearerMiddleware,
            path_configs=path_configs,
            provider=provider,
            user_resolver=user_resolver,
        )
    else:
        secret = settings.security.token_encryption_secret or settings.session.secret
        app.add_middleware(
            AuthorizeMiddleware,
            path_configs=path_configs,
            provider=provider,
            user_resolver=user_resolver,
            state_store=_build_state_store(settings, shared_redis),
            identities=SessionIdentityStore(TokenCipherService(secret=secret)),
            callback_uri=settings.oauth2.callback_uri,
            x_prefix=settings.server.x_prefix,
        )
        _add_session_middleware(app, settings, shared_redis)
    app.add_middleware(TimingMiddleware, show_cookies=settings.log_timing_show_cookies)

    logger.info(
        "Configured %s authentication with %d path rules",
        settings.auth_mode,
        len(path_configs),
    )
    return app


__all__ = ["create_app"]
