"""Classify request paths as whitelisted, fail-fast or normal."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Pattern, Sequence, Union

from oauth_gate.core.config import PathConfigEntry
from oauth_gate.core.errors import ConfigurationError


@dataclass(frozen=True)
class PathConfig:
    """One policy entry; ``pattern`` is searched for anywhere in the path."""

    pattern: Pattern[str]
    whitelist: bool = False
    fail_fast: bool = False

    @classmethod
    def of(
        cls, pattern: Union[str, Pattern[str]], *, whitelist: bool = False, fail_fast: bool = False
    ) -> "PathConfig":
        compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
        return cls(pattern=compiled, whitelist=whitelist, fail_fast=fail_fast)

    def matches(self, path: str) -> bool:
        return self.pattern.search(path) is not None


def path_configs_from_settings(entries: Iterable[PathConfigEntry]) -> list[PathConfig]:
    return [
        PathConfig.of(entry.pattern, whitelist=entry.whitelist, fail_fast=entry.fail_fast)
        for entry in entries
    ]


def match_path(configs: Sequence[PathConfig], path: str) -> PathConfig:
    """Return the first entry matching ``path``; earlier entries win."""
    for config in configs:
        if config.matches(path):
            return config
    raise ConfigurationError(path)


__all__ = ["PathConfig", "match_path", "path_configs_from_settings"]
