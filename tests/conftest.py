"""Pytest configuration and fakes shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for rootdir-less collection
    import _bootstrap  # type: ignore # noqa: F401

import json
from typing import Any, Optional

import httpx
import pytest

from oauth_gate.clients.identity_provider import IdentityProviderClient
from oauth_gate.core.config import AppSettings, OAuth2Settings, PathConfigEntry
from oauth_gate.models.oauth import OauthProfileRecord, UserRecord


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


class ProviderStub:
    """Scriptable identity provider served through ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.token_responses: list[tuple[int, Any]] = []
        self.profile: Any = {"sub": "p1", "email": "u@x.com", "name": "Una User"}
        self.profile_status = 200
        self.token_requests: list[dict] = []
        self.profile_authorizations: list[str] = []

    @property
    def call_count(self) -> int:
        return len(self.token_requests) + len(self.profile_authorizations)

    def queue_token(self, body: Any, status: int = 200) -> None:
        self.token_responses.append((status, body))

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/oauth/token":
            self.token_requests.append(json.loads(request.content))
            status, body = (
                self.token_responses.pop(0)
                if self.token_responses
                else (200, {"access_token": "T1", "expires_in": 3600})
            )
            if isinstance(body, str):
                return httpx.Response(status, text=body)
            return httpx.Response(status, json=body)
        if request.url.path == "/userinfo":
            self.profile_authorizations.append(request.headers.get("authorization", ""))
            return httpx.Response(self.profile_status, json=self.profile)
        return httpx.Response(404, json={"error": "not_found"})

    def client(self, settings: Optional[OAuth2Settings] = None) -> IdentityProviderClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return IdentityProviderClient(settings or OAuth2Settings(), http_client)  # type: ignore[call-arg]


class InMemoryUserRepository:
    """Dictionary-backed implementation of the user repository protocol."""

    def __init__(self) -> None:
        self.users: dict[str, UserRecord] = {}
        self.profiles: dict[str, OauthProfileRecord] = {}
        self.updates: list[tuple[str, OauthProfileRecord]] = []

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        for user in self.users.values():
            if user.email == email:
                return user
        return None

    async def add_user_by_email(self, email, profile) -> UserRecord:
        user = UserRecord(id=f"user-{len(self.users) + 1}", email=email, name=profile.name)
        self.users[user.id] = user
        return user

    async def get_oauth_profile_by_sub(self, sub: str) -> Optional[OauthProfileRecord]:
        return self.profiles.get(sub)

    async def upsert_oauth_profile(
        self, sub: str, user_id: str, profile_json: str
    ) -> OauthProfileRecord:
        record = OauthProfileRecord(sub=sub, user_id=user_id, profile_json=profile_json)
        self.profiles[sub] = record
        return record

    async def update_user(self, user_id: str, record: OauthProfileRecord) -> None:
        self.updates.append((user_id, record))


class FakeRedis:
    """Subset of the ``redis.asyncio.Redis`` API used by the redis-backed stores."""

    def __init__(self) -> None:
        self.values: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self.values[key] = value
        self.ttls[key] = ttl
        return True

    async def set(self, key: str, value: str) -> bool:
        self.values[key] = value
        self.ttls.pop(key, None)
        return True

    async def delete(self, key: str) -> int:
        self.ttls.pop(key, None)
        return 1 if self.values.pop(key, None) is not None else 0

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        return None


@pytest.fixture()
def provider_stub() -> ProviderStub:
    return ProviderStub()


@pytest.fixture()
def user_repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
def settings() -> AppSettings:
    return AppSettings(
        auth_path_configs=[
            PathConfigEntry(pattern=r"^/public", whitelist=True),
            PathConfigEntry(pattern=r"^/api/health$", whitelist=True),
            PathConfigEntry(pattern=r"^/api/", fail_fast=True),
            PathConfigEntry(pattern=r"^/(dashboard|whoami)"),
        ],
    )
