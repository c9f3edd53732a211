"""
Error taxonomy for the authorization code and bearer flows.

Every failure the middlewares route to an error handler is one of these.
"""

from __future__ import annotations

from typing import Optional


class OAuthFlowError(Exception):
    """Base class for failures raised while authenticating a request."""


class ProviderDeniedError(OAuthFlowError):
    """The provider redirected back to the callback with an ``error``."""

    def __init__(self, error: str, description: Optional[str] = None) -> None:
        self.error = error
        self.description = description
        message = f"{error}: {description}" if description else error
        super().__init__(message)


class MissingCodeError(OAuthFlowError):
    """The callback was invoked without an authorization code."""


class StaleStateError(OAuthFlowError):
    """No pending redirect exists for the supplied state key."""

    def __init__(self, state_key: Optional[str]) -> None:
        self.state_key = state_key
        super().__init__(f"No state found: key={state_key}")


class TokenExchangeError(OAuthFlowError):
    """The token endpoint failed or returned no access token."""


class ProfileFetchError(OAuthFlowError):
    """The profile endpoint failed or returned an unusable profile."""


class MissingTokenError(OAuthFlowError):
    """A bearer-protected path was requested without a token."""


class NotLoggedInError(OAuthFlowError):
    """An anonymous session requested a fail-fast path."""


class ConfigurationError(OAuthFlowError):
    """No path policy entry matches the request path."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"No matching auth path config found at {path}")


__all__ = [
    "ConfigurationError",
    "MissingCodeError",
    "MissingTokenError",
    "NotLoggedInError",
    "OAuthFlowError",
    "ProfileFetchError",
    "ProviderDeniedError",
    "StaleStateError",
    "TokenExchangeError",
]
