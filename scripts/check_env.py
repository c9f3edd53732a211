"""Utility for verifying that the gateway's environment configuration is intact.

Two checks are available:

1. ``check`` instantiates ``AppSettings`` from the provided ``.env`` file,
   surfacing missing or malformed entries (provider endpoints, client
   credentials, session secret, path rules) before the service starts failing.
2. ``ping-redis`` additionally connects to the configured redis server, which
   backs the redirect state store when ``OAUTH2_STATE_STORE=redis``.

Example usages::

    python -m scripts.check_env check --env-file /opt/gateway/.env
    python -m scripts.check_env ping-redis --env-file /opt/gateway/.env
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from oauth_gate.clients.redis_client import create_redis_client, redis_healthcheck
from oauth_gate.core.config import AppSettings, _load_env_file

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_RUNTIME_ERROR = 5


def _load_settings(env_file: Path) -> AppSettings:
    """Populate the process environment from ``env_file`` and build settings."""
    _load_env_file(str(env_file))
    return AppSettings(_env_file=env_file)  # type: ignore[call-arg]


async def _ping_redis(settings: AppSettings) -> None:
    client = create_redis_client(settings.redis)
    try:
        await redis_healthcheck(client)
    finally:
        await client.aclose()


def _run_check(settings: AppSettings) -> int:
    print(
        f"Settings OK: auth_mode={settings.auth_mode} "
        f"state_store={settings.oauth2.state_store} "
        f"path_rules={len(settings.auth_path_configs)}"
    )
    return EXIT_OK


def _run_ping_redis(settings: AppSettings) -> int:
    try:
        asyncio.run(_ping_redis(settings))
    except RuntimeError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    print(f"Redis at {settings.redis.url} is reachable.")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="check_env",
        description="Verify the gateway environment configuration.",
    )
    env_file_parent = argparse.ArgumentParser(add_help=False)
    env_file_parent.add_argument(
        "--env-file",
        type=Path,
        default=Path(".env"),
        help="Settings file to validate (default: ./.env).",
    )
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser(
        "check", parents=[env_file_parent], help="Load and validate settings."
    ).set_defaults(run=_run_check)
    commands.add_parser(
        "ping-redis",
        parents=[env_file_parent],
        help="Validate settings, then ping the configured redis server.",
    ).set_defaults(run=_run_ping_redis)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    if not args.env_file.is_file():
        print(f"No environment file at {args.env_file}.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    try:
        settings = _load_settings(args.env_file)
    except ValidationError as exc:
        print(f"Invalid settings in {args.env_file}:\n{exc.json(indent=2)}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    return args.run(settings)


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
