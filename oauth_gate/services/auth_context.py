"""
Per-request view of the authenticated principal.

The middlewares build one context per request and hand it to route handlers;
handlers read the user id and ask for a usable access token through it.
"""

from __future__ import annotations

import abc
import logging
from typing import TYPE_CHECKING, Any, MutableMapping, Optional

from oauth_gate.core.errors import TokenExchangeError
from oauth_gate.models.oauth import SessionIdentity

if TYPE_CHECKING:
    from oauth_gate.clients.identity_provider import IdentityProviderClient
    from oauth_gate.stores.session_identity import SessionIdentityStore

logger = logging.getLogger(__name__)


class AuthContext(abc.ABC):
    """Read access to the logged-in user and their provider token."""

    @abc.abstractmethod
    def get_logged_in_user_id(self) -> Optional[str]:
        ...

    @abc.abstractmethod
    async def get_access_token(self) -> Optional[str]:
        ...


class SessionAuthContext(AuthContext):
    """Context backed by the session identity record, refreshing on demand."""

    def __init__(
        self,
        session: MutableMapping[str, Any],
        identities: "SessionIdentityStore",
        provider: "IdentityProviderClient",
    ) -> None:
        self._session = session
        self._identities = identities
        self._provider = provider

    def get_logged_in_user_id(self) -> Optional[str]:
        identity = self._identities.read(self._session)
        if identity is None:
            return None
        return identity.user_id or None

    async def get_access_token(self) -> Optional[str]:
        """Return a current access token, refreshing it when missing or expired.

        Without a refresh token the stored token fields are cleared so the next
        login performs a full authorization. Provider errors propagate. A failed
        refresh leaves the stored record untouched.
        """
        identity = self._identities.read(self._session)
        if identity is None:
            return None
        if not identity.needs_refresh():
            return identity.access_token

        if identity.refresh_token:
            logger.debug("Refreshing access token for user %s", identity.user_id)
            token_response = await self._provider.refresh_token(identity.refresh_token)
            if not token_response.access_token:
                raise TokenExchangeError("No access token in refresh response")
            refreshed = SessionIdentity.from_token_response(
                identity.user_id,
                token_response.access_token,
                token_response.refresh_token,
                token_response.expires_in,
            )
            self._identities.write(self._session, refreshed)
            return refreshed.access_token

        logger.debug("No refresh token for user %s; clearing tokens", identity.user_id)
        self._identities.clear_tokens(self._session, identity.user_id)
        return None


class BearerAuthContext(AuthContext):
    """Context for a request that presented its own bearer token.

    The token is handed back verbatim; clients own their refresh cycle.
    """

    def __init__(self, user_id: Optional[str], token: str) -> None:
        self._user_id = user_id
        self._token = token

    def get_logged_in_user_id(self) -> Optional[str]:
        return self._user_id or None

    async def get_access_token(self) -> Optional[str]:
        return self._token or None


__all__ = ["AuthContext", "BearerAuthContext", "SessionAuthContext"]
