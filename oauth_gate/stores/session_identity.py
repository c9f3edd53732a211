"""Read and write the identity record kept in the user's session."""

from __future__ import annotations

import logging
from typing import Any, MutableMapping, Optional

from pydantic import ValidationError

from oauth_gate.models.oauth import SessionIdentity
from oauth_gate.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user"
_TOKEN_FIELDS = ("accessToken", "refreshToken")


class SessionIdentityStore:
    """Serialize ``SessionIdentity`` into a session mapping.

    When a cipher is supplied, token fields are encrypted before they reach the
    session, which the cookie backend only signs.
    """

    def __init__(self, cipher: Optional[TokenCipherService] = None) -> None:
        self._cipher = cipher

    def read(self, session: MutableMapping[str, Any]) -> Optional[SessionIdentity]:
        raw = session.get(SESSION_USER_KEY)
        if not raw:
            return None
        data = dict(raw)
        if self._cipher is not None:
            try:
                for field in _TOKEN_FIELDS:
                    data[field] = self._cipher.decrypt(data.get(field))
            except ValueError:
                logger.warning("Discarding session tokens that failed to decrypt")
                data.update({"accessToken": None, "refreshToken": None, "expiresAt": None})
        try:
            return SessionIdentity.model_validate(data)
        except ValidationError as exc:
            logger.warning("Ignoring malformed session identity: %s", exc)
            return None

    def write(self, session: MutableMapping[str, Any], identity: SessionIdentity) -> None:
        """Replace the stored record; fields are never merged."""
        data = identity.model_dump(by_alias=True, mode="json")
        if self._cipher is not None:
            for field in _TOKEN_FIELDS:
                data[field] = self._cipher.encrypt(data[field])
        session[SESSION_USER_KEY] = data

    def clear_tokens(self, session: MutableMapping[str, Any], user_id: str) -> None:
        """Keep the user logged in but force a full re-authorization for tokens."""
        self.write(session, SessionIdentity(user_id=user_id))


__all__ = ["SESSION_USER_KEY", "SessionIdentityStore"]
