"""State kept between requests: pending redirects and the session identity."""

from .redirect_state import (
    RedirectStateStore,
    RedisRedirectStateStore,
    SessionRedirectStateStore,
)
from .session_identity import SessionIdentityStore

__all__ = [
    "RedirectStateStore",
    "RedisRedirectStateStore",
    "SessionIdentityStore",
    "SessionRedirectStateStore",
]
