"""Schemas exchanged with the identity provider."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OAuthCallbackParams(BaseModel):
    """Query parameters the provider appends when redirecting to the callback."""

    code: Optional[str] = Field(None, description="Authorization code.")
    state: Optional[str] = Field(None, description="State key issued with the redirect.")
    error: Optional[str] = Field(None, description="Error code when the user was denied.")
    error_description: Optional[str] = None


class TokenResponse(BaseModel):
    """Body returned by the token endpoint for both grant types."""

    model_config = ConfigDict(extra="allow")

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    scope: Optional[str] = None
    token_type: Optional[str] = None
    id_token: Optional[str] = None
    nonce: Optional[str] = None


class DownloadedProfile(BaseModel):
    """Provider-asserted profile; ``sub`` is the only guaranteed claim."""

    model_config = ConfigDict(extra="allow")

    sub: str
    email: Optional[str] = None
    email_verified: Optional[bool] = None
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    name: Optional[str] = None
    nickname: Optional[str] = None
    picture: Optional[str] = None
    updated_at: Optional[str] = None

    def to_json(self) -> str:
        """Serialize the profile exactly as the provider supplied it."""
        return self.model_dump_json(exclude_unset=True)


__all__ = ["DownloadedProfile", "OAuthCallbackParams", "TokenResponse"]
