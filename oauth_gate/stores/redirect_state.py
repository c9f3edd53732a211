"""
Pending post-login redirects, keyed by the OAuth ``state`` parameter.

An entry is written when a request is sent to the provider and consumed once
by the callback. A missing entry, whether never written, already consumed or
expired, is reported as ``None``.
"""

from __future__ import annotations

import abc
import logging
import time
from typing import Any, Callable, Optional

import redis.asyncio as redis
from starlette.requests import HTTPConnection

logger = logging.getLogger(__name__)

SESSION_REDIRECTS_KEY = "postLoginRedirects"


class RedirectStateStore(abc.ABC):
    """Storage for ``state key -> original URL`` pairs."""

    @abc.abstractmethod
    async def get(self, request: HTTPConnection, state_key: str) -> Optional[str]:
        """Return the stored URL, or ``None`` when absent."""

    @abc.abstractmethod
    async def set(self, request: HTTPConnection, state_key: str, url: str) -> None:
        """Remember ``url`` under ``state_key``."""

    @abc.abstractmethod
    async def delete(self, request: HTTPConnection, state_key: str) -> None:
        """Forget ``state_key``; deleting a missing key is a no-op."""


class SessionRedirectStateStore(RedirectStateStore):
    """Keep pending redirects inside the user's session.

    The map rides along in the session cookie, so it is pruned on every write:
    entries older than ``ttl_seconds`` are dropped and at most ``max_entries``
    of the most recent pending attempts are kept.
    """

    def __init__(
        self,
        *,
        ttl_seconds: int = 600,
        max_entries: int = 10,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ttl_seconds = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock

    def _is_live(self, entry: Any, now: float) -> bool:
        if not isinstance(entry, dict):
            # entries written before pruning existed carry no timestamp
            return isinstance(entry, str)
        created_at = entry.get("createdAt")
        if not isinstance(created_at, (int, float)):
            return False
        return now - created_at <= self._ttl_seconds

    async def get(self, request: HTTPConnection, state_key: str) -> Optional[str]:
        entry = (request.session.get(SESSION_REDIRECTS_KEY) or {}).get(state_key)
        if entry is None or not self._is_live(entry, self._clock()):
            return None
        return entry if isinstance(entry, str) else entry.get("url")

    async def set(self, request: HTTPConnection, state_key: str, url: str) -> None:
        now = self._clock()
        pending = {
            key: entry
            for key, entry in (request.session.get(SESSION_REDIRECTS_KEY) or {}).items()
            if key != state_key and self._is_live(entry, now)
        }
        keep = max(self._max_entries - 1, 0)
        if len(pending) > keep:
            dropped = len(pending) - keep
            pending = dict(list(pending.items())[dropped:])
            logger.debug("Evicted %d abandoned redirect states from session", dropped)
        pending[state_key] = {"url": url, "createdAt": now}
        request.session[SESSION_REDIRECTS_KEY] = pending

    async def delete(self, request: HTTPConnection, state_key: str) -> None:
        redirects = dict(request.session.get(SESSION_REDIRECTS_KEY) or {})
        redirects.pop(state_key, None)
        request.session[SESSION_REDIRECTS_KEY] = redirects


class RedisRedirectStateStore(RedirectStateStore):
    """Keep pending redirects in redis with an expiry."""

    def __init__(
        self,
        client: redis.Redis,
        *,
        ttl_seconds: int = 600,
        key_prefix: str = "authState:",
    ) -> None:
        self._client = client
        self._ttl_seconds = ttl_seconds
        self._key_prefix = key_prefix

    def _key(self, state_key: str) -> str:
        return f"{self._key_prefix}{state_key}"

    async def get(self, request: HTTPConnection, state_key: str) -> Optional[str]:
        value = await self._client.get(self._key(state_key))
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value or None

    async def set(self, request: HTTPConnection, state_key: str, url: str) -> None:
        await self._client.setex(self._key(state_key), self._ttl_seconds, url)
        logger.debug("Stored redirect state %s (ttl=%ss)", state_key, self._ttl_seconds)

    async def delete(self, request: HTTPConnection, state_key: str) -> None:
        await self._client.delete(self._key(state_key))


__all__ = [
    "RedirectStateStore",
    "RedisRedirectStateStore",
    "SESSION_REDIRECTS_KEY",
    "SessionRedirectStateStore",
]
