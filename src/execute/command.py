"""Build tool command lines."""

from __future__ import annotations

import shlex
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from execute.models import BuildOptions

WRAPPER_NAME = "mvnw"


def resolve_executable(root: Path, default: str = "mvn") -> str:
    """Prefer the repository's Maven wrapper over the executable on PATH."""
    if (root / WRAPPER_NAME).is_file():
        return f"./{WRAPPER_NAME}"
    return default


def effective_goal(options: BuildOptions) -> str:
    """Goal actually passed to the build tool.

    A ``test`` run is executed as ``install`` so that later levels can resolve
    the freshly built artifacts; tests still run because -DskipTests is not
    passed for it.
    """
    return "install" if options.goal == "test" else options.goal


def _common_flags(options: BuildOptions) -> list[str]:
    flags: list[str] = []
    if options.skip_tests and options.goal != "test":
        flags.append("-DskipTests")
    if options.offline:
        flags.append("--offline")
    return flags


def module_command(
    executable: str, module: str, options: BuildOptions
) -> list[str]:
    """Command for building one module in its own subprocess.

    ``-am`` is only added for standalone single-module builds; inside a level
    the earlier levels have already installed the prerequisites.
    """
    argv = [executable, "-pl", module]
    if options.also_make:
        argv.append("-am")
    argv.extend(["clean", effective_goal(options)])
    argv.extend(_common_flags(options))
    return argv


def level_command(
    executable: str, modules: Sequence[str], options: BuildOptions
) -> list[str]:
    """Command for building a whole level in one subprocess."""
    argv = [executable, "-pl", ",".join(modules)]
    if options.also_make and len(modules) == 1:
        argv.append("-am")
    argv.extend(["clean", effective_goal(options)])
    argv.extend(_common_flags(options))
    if options.max_parallel > 1 and len(modules) > 1:
        argv.append(f"-T{min(options.max_parallel, len(modules))}")
    return argv


def parent_install_command(executable: str, options: BuildOptions) -> list[str]:
    """Non-recursive install of the root descriptor only."""
    argv = [executable, "-N", "install", "-DskipTests"]
    if options.offline:
        argv.append("--offline")
    return argv


def format_command(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


__all__ = [
    "effective_goal",
    "format_command",
    "level_command",
    "module_command",
    "parent_install_command",
    "resolve_executable",
]
