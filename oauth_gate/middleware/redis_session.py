"""
Server-side sessions kept in redis.

A drop-in alternative to Starlette's ``SessionMiddleware``: ``scope["session"]``
behaves the same for downstream code, but the cookie carries only a signed
session id and the session body lives under ``<key_prefix><id>`` in redis.
Provider tokens and pending redirects therefore never leave the server.
"""

from __future__ import annotations

import json
import logging
import secrets
from typing import Any, Optional

import redis.asyncio as redis
from itsdangerous import BadSignature, TimestampSigner
from starlette.datastructures import MutableHeaders
from starlette.requests import HTTPConnection
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


class RedisSessionMiddleware:
    def __init__(
        self,
        app: ASGIApp,
        *,
        client: redis.Redis,
        secret_key: str,
        session_cookie: str = "session",
        key_prefix: str = "sess:",
        max_age: Optional[int] = 14 * 24 * 60 * 60,
        path: str = "/",
        same_site: str = "lax",
        https_only: bool = False,
    ) -> None:
        self.app = app
        self._client = client
        self._signer = TimestampSigner(str(secret_key))
        self._session_cookie = session_cookie
        self._key_prefix = key_prefix
        self._max_age = max_age
        self._path = path
        self._security_flags = f"httponly; samesite={same_site}"
        if https_only:
            self._security_flags += "; secure"

    def _key(self, session_id: str) -> str:
        return f"{self._key_prefix}{session_id}"

    def _unsign(self, cookie: str) -> Optional[str]:
        try:
            unsigned = self._signer.unsign(cookie.encode("utf-8"), max_age=self._max_age)
            return unsigned.decode("utf-8")
        except BadSignature:
            logger.debug("Ignoring session cookie with a bad signature")
            return None

    async def _load(self, session_id: str) -> Optional[dict[str, Any]]:
        raw = await self._client.get(self._key(session_id))
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable session %s", session_id)
            return None
        return data if isinstance(data, dict) else None

    async def _save(self, session_id: str, session: dict[str, Any]) -> None:
        payload = json.dumps(session)
        if self._max_age:
            await self._client.setex(self._key(session_id), self._max_age, payload)
        else:
            await self._client.set(self._key(session_id), payload)

    def _cookie_header(self, value: str, max_age: Optional[int]) -> str:
        max_age_attr = f"Max-Age={max_age}; " if max_age is not None else ""
        return (
            f"{self._session_cookie}={value}; path={self._path}; "
            f"{max_age_attr}{self._security_flags}"
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        connection = HTTPConnection(scope)
        session_id: Optional[str] = None
        initial: dict[str, Any] = {}
        cookie = connection.cookies.get(self._session_cookie)
        if cookie:
            session_id = self._unsign(cookie)
        if session_id:
            stored = await self._load(session_id)
            if stored is None:
                # expired or evicted server-side; never resurrect the old id
                session_id = None
            else:
                initial = stored
        had_session = session_id is not None
        scope["session"] = json.loads(json.dumps(initial))

        async def send_wrapper(message: Message) -> None:
            nonlocal session_id
            if message["type"] == "http.response.start":
                session = scope["session"]
                headers = MutableHeaders(scope=message)
                if session:
                    if session_id is None:
                        session_id = secrets.token_urlsafe(32)
                        signed = self._signer.sign(session_id.encode("utf-8")).decode("utf-8")
                        headers.append("Set-Cookie", self._cookie_header(signed, self._max_age))
                    if session != initial:
                        await self._save(session_id, session)
                elif had_session and session_id is not None:
                    await self._client.delete(self._key(session_id))
                    headers.append("Set-Cookie", self._cookie_header("null", 0))
            await send(message)

        await self.app(scope, receive, send_wrapper)


__all__ = ["RedisSessionMiddleware"]
