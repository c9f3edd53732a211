"""Tests for the environment check script."""

from __future__ import annotations

from pathlib import Path

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from scripts import check_env

REQUIRED_ENV_KEYS = [
    "OAUTH2_CLIENT_ID",
    "OAUTH2_CLIENT_SECRET",
    "OAUTH2_AUTHORIZE_URL",
    "OAUTH2_TOKEN_URL",
    "OAUTH2_PROFILE_URL",
    "SESSION_SECRET",
]

VALID_ENV = {
    "OAUTH2_CLIENT_ID": "abc",
    "OAUTH2_CLIENT_SECRET": "secret",
    "OAUTH2_AUTHORIZE_URL": "https://idp.example.com/authorize",
    "OAUTH2_TOKEN_URL": "https://idp.example.com/oauth/token",
    "OAUTH2_PROFILE_URL": "https://idp.example.com/userinfo",
    "SESSION_SECRET": "cookie-secret",
}


def _write_env(env_path: Path, **values: str) -> None:
    contents = "\n".join(f"{key}={value}" for key, value in values.items())
    env_path.write_text(contents + "\n", encoding="utf-8")


def _clear_required_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in REQUIRED_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.mark.parametrize("command", ["check", "ping-redis"])
def test_main_requires_existing_env_file(tmp_path: Path, command: str) -> None:
    env_file = tmp_path / ".missing-env"

    exit_code = check_env.main([command, "--env-file", str(env_file)])

    assert exit_code == check_env.EXIT_RUNTIME_ERROR


def test_check_accepts_complete_env_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    _clear_required_env(monkeypatch)
    _write_env(env_file, **VALID_ENV)

    exit_code = check_env.main(["check", "--env-file", str(env_file)])

    assert exit_code == check_env.EXIT_OK


def test_validation_failure_for_missing_required_values(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    env_file = tmp_path / ".env"
    _clear_required_env(monkeypatch)
    values = dict(VALID_ENV)
    del values["OAUTH2_CLIENT_SECRET"]
    _write_env(env_file, **values)

    exit_code = check_env.main(["check", "--env-file", str(env_file)])

    assert exit_code == check_env.EXIT_VALIDATION_ERROR
    assert "client_secret" in capsys.readouterr().err


def test_ping_redis_reports_unreachable_server(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    class UnreachableRedis:
        async def ping(self) -> bool:
            raise RedisConnectionError("Connection refused")

        async def aclose(self) -> None:
            return None

    env_file = tmp_path / ".env"
    _clear_required_env(monkeypatch)
    _write_env(env_file, **VALID_ENV)
    monkeypatch.setattr(check_env, "create_redis_client", lambda settings: UnreachableRedis())

    exit_code = check_env.main(["ping-redis", "--env-file", str(env_file)])

    assert exit_code == check_env.EXIT_RUNTIME_ERROR


def test_ping_redis_succeeds_against_live_server(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, fake_redis
) -> None:
    env_file = tmp_path / ".env"
    _clear_required_env(monkeypatch)
    _write_env(env_file, **VALID_ENV)
    monkeypatch.setattr(check_env, "create_redis_client", lambda settings: fake_redis)

    exit_code = check_env.main(["ping-redis", "--env-file", str(env_file)])

    assert exit_code == check_env.EXIT_OK
