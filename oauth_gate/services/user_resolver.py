"""
Map a downloaded provider profile onto a local user.

The embedding application owns persistence; it plugs in through the
``UserRepository`` protocol and an optional reconciliation hook.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional, Protocol

from oauth_gate.models.oauth import OauthProfileRecord, UserRecord
from oauth_gate.schemas import DownloadedProfile

logger = logging.getLogger(__name__)

UpdateUserHook = Callable[[str, OauthProfileRecord], Awaitable[Any]]


class UserRepository(Protocol):
    """Persistence operations the resolver needs from the application."""

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]: ...

    async def add_user_by_email(
        self, email: str, profile: DownloadedProfile
    ) -> UserRecord: ...

    async def get_oauth_profile_by_sub(self, sub: str) -> Optional[OauthProfileRecord]: ...

    async def upsert_oauth_profile(
        self, sub: str, user_id: str, profile_json: str
    ) -> OauthProfileRecord: ...


class UserResolver:
    """Find or create the local user behind a provider profile."""

    def __init__(
        self,
        repository: UserRepository,
        *,
        update_user: Optional[UpdateUserHook] = None,
    ) -> None:
        self._repository = repository
        self._update_user = update_user

    async def resolve_or_create_user(self, profile: DownloadedProfile) -> str:
        """Return the local user id for ``profile``, creating the user if needed.

        Email-less profiles are keyed by ``sub`` alone and never merged with
        another user. The profile snapshot is upserted on every call; the
        update hook only runs for users that already existed.
        """
        user_added = False
        if not profile.email:
            saved_profile = await self._repository.get_oauth_profile_by_sub(profile.sub)
            if saved_profile is None:
                user = await self._repository.add_user_by_email("", profile)
                user_id = user.id
                user_added = True
            else:
                user_id = saved_profile.user_id
        else:
            user = await self._repository.get_user_by_email(profile.email)
            if user is None:
                user = await self._repository.add_user_by_email(profile.email, profile)
                user_added = True
            user_id = user.id

        record = await self._repository.upsert_oauth_profile(
            profile.sub, user_id, profile.to_json()
        )
        if user_added:
            logger.info("Created local user %s for subject %s", user_id, profile.sub)
        elif self._update_user is not None:
            await self._update_user(user_id, record)
        return user_id


__all__ = ["UpdateUserHook", "UserRepository", "UserResolver"]
