"""Expose constructed client wrappers."""

from .identity_provider import IdentityProviderClient, create_http_client
from .redis_client import create_redis_client, redis_healthcheck
from .sqlite_store import SQLiteUserStore

__all__ = [
    "IdentityProviderClient",
    "SQLiteUserStore",
    "create_http_client",
    "create_redis_client",
    "redis_healthcheck",
]
