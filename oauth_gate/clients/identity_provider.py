"""
Identity provider client.

Builds authorization URLs and performs the three outbound calls of the
authorization code flow: code exchange, token refresh and profile download.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from oauth_gate.core.config import OAuth2Settings
from oauth_gate.core.errors import ProfileFetchError, TokenExchangeError
from oauth_gate.schemas import DownloadedProfile, TokenResponse

logger = logging.getLogger(__name__)


def create_http_client(settings: OAuth2Settings) -> httpx.AsyncClient:
    """Build the shared HTTP client used for provider calls."""
    return httpx.AsyncClient(timeout=settings.provider_timeout_seconds)


class IdentityProviderClient:
    """Talk to the provider's authorize, token and profile endpoints."""

    def __init__(self, settings: OAuth2Settings, http_client: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http_client

    def build_authorization_url(
        self,
        *,
        redirect_uri: str,
        state: str,
        ui_locales: Optional[str] = None,
    ) -> str:
        """Construct the provider consent URL."""
        params = {
            "response_type": "code",
            "client_id": self._settings.client_id,
            "redirect_uri": redirect_uri,
            "state": state,
            "scope": " ".join(self._settings.scopes),
        }
        if ui_locales:
            params["ui_locales"] = ui_locales
        base = self._settings.authorize_url
        separator = "&" if "?" in base else "?"
        return f"{base}{separator}{urlencode(params)}"

    async def exchange_code(self, code: str, redirect_uri: str) -> TokenResponse:
        """
        Exchange an authorization code for tokens.

        The response is returned as parsed; callers check for ``access_token``.
        """
        payload = {
            "client_id": self._settings.client_id,
            "client_secret": self._settings.client_secret,
            "grant_type": "authorization_code",
            "redirect_uri": redirect_uri,
            "code": code,
        }
        return await self._request_token(payload)

    async def refresh_token(self, refresh_token: str) -> TokenResponse:
        """Mint a new access token from a stored refresh token."""
        payload = {
            "client_id": self._settings.client_id,
            "client_secret": self._settings.client_secret,
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        }
        return await self._request_token(payload)

    async def fetch_profile(self, access_token: str) -> DownloadedProfile:
        """Download the profile of the principal owning ``access_token``."""
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {access_token}",
        }
        try:
            response = await self._http.get(self._settings.profile_url, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("Profile download failed: %s", exc)
            raise ProfileFetchError(f"Profile request failed: {exc}") from exc

        logger.debug("Profile endpoint responded with HTTP %s", response.status_code)
        try:
            return DownloadedProfile.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            logger.error(
                "Unusable profile response (HTTP %s): %s", response.status_code, exc
            )
            raise ProfileFetchError(
                f"Profile endpoint returned an unusable body (HTTP {response.status_code})."
            ) from exc

    async def _request_token(self, payload: Dict[str, Any]) -> TokenResponse:
        grant_type = payload["grant_type"]
        if self._settings.token_request_format == "form":
            request_kwargs: Dict[str, Any] = {"data": payload}
        else:
            request_kwargs = {"json": payload}

        try:
            response = await self._http.post(
                self._settings.token_url,
                headers={"Accept": "application/json"},
                **request_kwargs,
            )
        except httpx.HTTPError as exc:
            logger.error("Token request (%s) failed: %s", grant_type, exc)
            raise TokenExchangeError(f"Token request failed: {exc}") from exc

        logger.debug(
            "Token endpoint (%s) responded with HTTP %s", grant_type, response.status_code
        )
        try:
            return TokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            logger.error(
                "Unparsable token response (%s, HTTP %s): %s",
                grant_type,
                response.status_code,
                exc,
            )
            raise TokenExchangeError(
                f"Token endpoint returned an unparsable body (HTTP {response.status_code})."
            ) from exc


__all__ = ["IdentityProviderClient", "create_http_client"]
