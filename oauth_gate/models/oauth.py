"""
Domain models for local identities and the session-bound token record.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserRecord(BaseModel):
    """Local user owned by the embedding application."""

    id: str
    email: str = ""
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    name: Optional[str] = None


class OauthProfileRecord(BaseModel):
    """Latest profile snapshot for one (provider subject, local user) pairing."""

    model_config = ConfigDict(populate_by_name=True)

    sub: str
    user_id: str = Field(..., alias="userId")
    profile_json: str = Field(..., alias="profileJson")


class SessionIdentity(BaseModel):
    """Identity record stored in the user's session."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId")
    access_token: Optional[str] = Field(None, alias="accessToken")
    refresh_token: Optional[str] = Field(None, alias="refreshToken")
    expires_at: Optional[datetime] = Field(None, alias="expiresAt")

    @classmethod
    def from_token_response(
        cls,
        user_id: str,
        access_token: Optional[str],
        refresh_token: Optional[str],
        expires_in: Optional[int],
    ) -> "SessionIdentity":
        expires_at = None
        if expires_in and expires_in > 0:
            expires_at = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
        return cls(
            user_id=user_id,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
        )

    def needs_refresh(self, now: Optional[datetime] = None) -> bool:
        """True when there is no usable access token."""
        if not self.access_token:
            return True
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at < now


__all__ = ["OauthProfileRecord", "SessionIdentity", "UserRecord"]
