"""
Application configuration models and helpers.

Centralizes settings management so the middleware stack, the demo application
and the maintenance scripts share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Literal, Optional

import os

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class OAuth2Settings(BaseSettings):
    """Identity provider endpoints and client registration."""

    model_config = SettingsConfigDict(env_prefix="OAUTH2_")

    client_id: str
    client_secret: str
    authorize_url: str
    token_url: str
    profile_url: str
    scopes: Annotated[tuple[str, ...], NoDecode] = ("openid", "profile", "email")
    callback_uri: str = "/oauth2/callback"
    state_store: Literal["session", "redis"] = Field(
        "session",
        description="Backend holding pending post-login redirects.",
    )
    state_ttl_seconds: int = Field(
        600,
        description="Lifetime of a pending redirect entry.",
    )
    state_max_pending: int = Field(
        10,
        description="Pending redirects kept in the session before the oldest are evicted.",
    )
    token_request_format: Literal["json", "form"] = Field(
        "json",
        description="Encoding of the token endpoint request body.",
    )
    provider_timeout_seconds: Optional[float] = Field(
        None,
        description="Timeout for provider calls; unset means no timeout.",
    )

    @field_validator("scopes", mode="before")
    @classmethod
    def _split_scopes(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        """Support providing scopes as a comma or space separated string."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(value)
        return tuple(scope for scope in value.replace(",", " ").split() if scope)


class SessionSettings(BaseSettings):
    """Cookie session configuration."""

    model_config = SettingsConfigDict(env_prefix="SESSION_")

    secret: str
    backend: Literal["cookie", "redis"] = Field(
        "cookie",
        description="Signed client-side cookie, or a cookie holding only an id into redis.",
    )
    key_prefix: str = "sess:"
    cookie_name: str = "session"
    same_site: Literal["lax", "strict", "none"] = "lax"
    https_only: bool = False
    max_age: Optional[int] = Field(
        14 * 24 * 60 * 60,
        description="Cookie lifetime in seconds; unset for browser-session cookies.",
    )


class RedisSettings(BaseSettings):
    """Connection settings for the redirect state store and server-side sessions."""

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    url: str = "redis://localhost:6379/0"
    auth: Optional[str] = Field(None, description="Optional redis password.")
    key_prefix: str = "authState:"


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    token_encryption_secret: Optional[str] = Field(
        None,
        description=(
            "Secret used to derive the symmetric key for encrypting tokens "
            "stored in the session cookie."
        ),
    )


class ServerSettings(BaseSettings):
    """Reverse proxy awareness."""

    model_config = SettingsConfigDict(env_prefix="SERVER_")

    x_prefix: str = Field(
        "",
        description="Infix for forwarded headers, e.g. 'myproxy-' for x-myproxy-forwarded-host.",
    )


class PathConfigEntry(BaseModel):
    """Serialized form of a path policy entry."""

    pattern: str
    whitelist: bool = False
    fail_fast: bool = False


class AppSettings(BaseSettings):
    """Root settings object for the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    auth_mode: Literal["session", "bearer"] = Field(
        "session",
        description="Which middleware guards the application.",
    )
    auth_path_configs: list[PathConfigEntry] = Field(
        default_factory=lambda: [
            PathConfigEntry(pattern=r"^/api/health$", whitelist=True),
            PathConfigEntry(pattern=r"^/api/", fail_fast=True),
            PathConfigEntry(pattern=r".*"),
        ],
        description="Ordered path rules, JSON encoded in AUTH_PATH_CONFIGS.",
    )
    log_timing_show_cookies: bool = False
    user_db_path: str = "data/users.db"
    oauth2: OAuth2Settings = Field(default_factory=OAuth2Settings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    server: ServerSettings = Field(default_factory=ServerSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "OAuth2Settings",
    "PathConfigEntry",
    "RedisSettings",
    "SecuritySettings",
    "ServerSettings",
    "SessionSettings",
    "get_settings",
]
