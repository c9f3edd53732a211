"""ASGI middleware guarding the application."""

from .authorize import AuthorizeMiddleware
from .bearer import BearerMiddleware, extract_bearer_token
from .errors import ErrorHandler, default_error_handler
from .path_policy import PathConfig, match_path, path_configs_from_settings
from .redis_session import RedisSessionMiddleware
from .timing import TimingMiddleware

__all__ = [
    "AuthorizeMiddleware",
    "BearerMiddleware",
    "ErrorHandler",
    "PathConfig",
    "RedisSessionMiddleware",
    "TimingMiddleware",
    "default_error_handler",
    "extract_bearer_token",
    "match_path",
    "path_configs_from_settings",
]
