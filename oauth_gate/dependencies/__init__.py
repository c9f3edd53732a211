"""Expose dependency helpers for FastAPI routers."""

from .auth import get_auth_context
from .config import get_app_settings

__all__ = [
    "get_app_settings",
    "get_auth_context",
]
