"""Public schema exports."""

from .auth import DownloadedProfile, OAuthCallbackParams, TokenResponse

__all__ = [
    "DownloadedProfile",
    "OAuthCallbackParams",
    "TokenResponse",
]
