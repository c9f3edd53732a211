"""Service layer exports."""

from .auth_context import AuthContext, BearerAuthContext, SessionAuthContext
from .token_cipher import TokenCipherService
from .user_resolver import UpdateUserHook, UserRepository, UserResolver

__all__ = [
    "AuthContext",
    "BearerAuthContext",
    "SessionAuthContext",
    "TokenCipherService",
    "UpdateUserHook",
    "UserRepository",
    "UserResolver",
]
