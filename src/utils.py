"""Shared utilities for monobuild."""

from __future__ import annotations

import re
import time
from pathlib import Path

_SNAPSHOT_SUFFIX = re.compile(r"-SNAPSHOT$")


def normalize_version(version: str | None) -> str | None:
    """Strip a trailing -SNAPSHOT qualifier.

    Examples:
        >>> normalize_version("1.2.0-SNAPSHOT")
        '1.2.0'
        >>> normalize_version("1.2.0")
        '1.2.0'
        >>> normalize_version(None) is None
        True
    """
    if not version:
        return None
    return _SNAPSHOT_SUFFIX.sub("", version)


def snapshot_version(version: str) -> str:
    """Return the Maven development form of a version."""
    return version if version.endswith("-SNAPSHOT") else f"{version}-SNAPSHOT"


def split_csv(value: str | None) -> list[str]:
    """Split a comma-separated CLI value, dropping blanks.

    Examples:
        >>> split_csv("a, b,,c")
        ['a', 'b', 'c']
    """
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def to_posix(path: str | Path) -> str:
    """Normalize a relative path to forward slashes without a trailing slash."""
    path_str = path.as_posix() if isinstance(path, Path) else str(path)
    parts = [part for part in path_str.replace("\\", "/").split("/") if part]
    return "/".join(part for part in parts if part != ".")


def timestamp() -> str:
    """Wall-clock time of day used to prefix streamed build output."""
    return time.strftime("%H:%M:%S")
