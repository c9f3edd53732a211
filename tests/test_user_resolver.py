import json

import pytest

from oauth_gate.schemas import DownloadedProfile
from oauth_gate.services.user_resolver import UserResolver

pytestmark = pytest.mark.anyio


async def test_new_email_creates_user_without_running_update_hook(user_repository) -> None:
    resolver = UserResolver(user_repository, update_user=user_repository.update_user)

    user_id = await resolver.resolve_or_create_user(
        DownloadedProfile(sub="p1", email="a@x.com", name="Ann")
    )

    assert user_id == "user-1"
    assert user_repository.users["user-1"].email == "a@x.com"
    assert user_repository.profiles["p1"].user_id == "user-1"
    assert user_repository.updates == []


async def test_same_email_from_two_subjects_maps_to_one_user(user_repository) -> None:
    resolver = UserResolver(user_repository, update_user=user_repository.update_user)

    first = await resolver.resolve_or_create_user(DownloadedProfile(sub="google|1", email="a@x.com"))
    second = await resolver.resolve_or_create_user(DownloadedProfile(sub="github|9", email="a@x.com"))

    assert first == second
    assert len(user_repository.users) == 1
    assert set(user_repository.profiles) == {"google|1", "github|9"}
    assert [user_id for user_id, _ in user_repository.updates] == [first]
    assert user_repository.updates[0][1].sub == "github|9"


async def test_email_less_profiles_are_keyed_by_subject(user_repository) -> None:
    resolver = UserResolver(user_repository)

    first = await resolver.resolve_or_create_user(DownloadedProfile(sub="s-1"))
    again = await resolver.resolve_or_create_user(DownloadedProfile(sub="s-1", name="Later"))
    other = await resolver.resolve_or_create_user(DownloadedProfile(sub="s-2"))

    assert first == again
    assert other != first
    assert user_repository.users[first].email == ""
    assert json.loads(user_repository.profiles["s-1"].profile_json) == {"sub": "s-1", "name": "Later"}


async def test_profile_snapshot_is_refreshed_on_every_login(user_repository) -> None:
    resolver = UserResolver(user_repository, update_user=user_repository.update_user)

    await resolver.resolve_or_create_user(DownloadedProfile(sub="p1", email="a@x.com", name="Old"))
    await resolver.resolve_or_create_user(DownloadedProfile(sub="p1", email="a@x.com", name="New"))

    snapshot = json.loads(user_repository.profiles["p1"].profile_json)
    assert snapshot["name"] == "New"
    assert user_repository.updates[-1][1].profile_json == user_repository.profiles["p1"].profile_json


async def test_repository_failures_propagate(user_repository) -> None:
    async def broken_lookup(email):
        raise RuntimeError("database unavailable")

    user_repository.get_user_by_email = broken_lookup
    resolver = UserResolver(user_repository)

    with pytest.raises(RuntimeError, match="database unavailable"):
        await resolver.resolve_or_create_user(DownloadedProfile(sub="p1", email="a@x.com"))
    assert user_repository.profiles == {}
