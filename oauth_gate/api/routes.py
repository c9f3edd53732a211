"""
FastAPI routes of the demo application.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Annotated

from fastapi import APIRouter, Depends

from oauth_gate.core.config import AppSettings
from oauth_gate.dependencies import get_app_settings, get_auth_context
from oauth_gate.services.auth_context import AuthContext

router = APIRouter()


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck(
    settings: Annotated[AppSettings, Depends(get_app_settings)],
) -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok", "environment": settings.environment}


@router.get("/me", status_code=HTTPStatus.OK)
async def current_user(
    auth: Annotated[AuthContext, Depends(get_auth_context)],
) -> dict:
    """Report the logged-in user and whether a provider token is usable."""
    access_token = await auth.get_access_token()
    return {
        "user_id": auth.get_logged_in_user_id(),
        "has_access_token": access_token is not None,
    }


__all__ = ["router"]
