"""Git based change detection for module builds."""

from __future__ import annotations

import logging
import os
import subprocess
from typing import TYPE_CHECKING

import orjson
from pydantic import BaseModel, ConfigDict

from rules.config import DEFAULT_BASE_PATHS
from utils import to_posix

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from pathlib import Path

logger = logging.getLogger(__name__)

ARTIFACT_FILES = (
    "change-detection.json",
    "changed-modules.txt",
    "maven-pl.txt",
    "changed-files.txt",
    "summary.txt",
)


class GitError(Exception):
    """Raised when a git command exits non-zero or cannot be started."""


class ChangeSet(BaseModel):
    """Outcome of one change detection run."""

    model_config = ConfigDict(frozen=True)

    base_branch: str
    modules: tuple[str, ...]
    changed_files: tuple[str, ...]
    changed_modules: tuple[str, ...]
    all_modules: bool = False
    base_changed_files: tuple[str, ...] = ()


def run_git(args: Sequence[str], cwd: Path) -> str:
    try:
        proc = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        msg = f"git {' '.join(args)}: {exc}"
        raise GitError(msg) from exc
    if proc.returncode != 0:
        msg = f"git {' '.join(args)} exited with {proc.returncode}: {proc.stderr.strip()}"
        raise GitError(msg)
    return proc.stdout


def _lines(output: str) -> list[str]:
    return [line.strip() for line in output.splitlines() if line.strip()]


def is_ci_push(environ: Mapping[str, str] | None = None) -> bool:
    env = os.environ if environ is None else environ
    return bool(env.get("CI")) and env.get("GITHUB_EVENT_NAME") == "push"


def changed_files(
    root: Path, base_branch: str, *, environ: Mapping[str, str] | None = None
) -> list[str]:
    """Files changed relative to ``base_branch`` (or the previous commit on CI pushes).

    Never raises: falls back to the working tree diff, then to no files.
    """
    try:
        if is_ci_push(environ):
            return _lines(run_git(["diff", "--name-only", "HEAD~1"], root))
        try:
            run_git(["fetch", "origin", f"{base_branch}:{base_branch}"], root)
        except GitError as exc:
            logger.debug("Fetch of %s failed, using local branch: %s", base_branch, exc)
        return _lines(run_git(["diff", "--name-only", f"{base_branch}...HEAD"], root))
    except GitError as exc:
        logger.debug("Diff against %s failed: %s", base_branch, exc)

    try:
        return _lines(run_git(["diff", "--name-only", "HEAD"], root))
    except GitError as exc:
        logger.error("Error getting changed files: %s", exc)
        return []


def is_base_file(path: str, base_paths: Sequence[str] = DEFAULT_BASE_PATHS) -> bool:
    """Directory entries (trailing '/') match by prefix, others exactly."""
    for base in base_paths:
        if base.endswith("/"):
            if path.startswith(base):
                return True
        elif path == base:
            return True
    return False


def map_files_to_modules(files: Sequence[str], modules: Sequence[str]) -> list[str]:
    """Modules containing at least one of ``files``, in first-seen order."""
    found: list[str] = []
    for raw in files:
        path = raw.replace("\\", "/")
        for module in modules:
            if path.startswith(to_posix(module) + "/"):
                if module not in found:
                    found.append(module)
                break
    return found


def detect_changes(
    root: Path,
    modules: Sequence[str],
    *,
    base_branch: str = "main",
    base_paths: Sequence[str] = DEFAULT_BASE_PATHS,
    files: Sequence[str] | None = None,
) -> ChangeSet:
    """Work out which modules need building.

    Args:
        root: Repository root (git working tree)
        modules: Declared module paths
        files: Changed files; read from git when None
    """
    changed = list(files) if files is not None else changed_files(root, base_branch)
    base_changed = [path for path in changed if is_base_file(path, base_paths)]

    if base_changed:
        logger.warning(
            "Base files changed (%s), all modules will be built.", ", ".join(base_changed)
        )
        changed_modules = list(modules)
    else:
        changed_modules = map_files_to_modules(changed, modules)

    return ChangeSet(
        base_branch=base_branch,
        modules=tuple(modules),
        changed_files=tuple(changed),
        changed_modules=tuple(changed_modules),
        all_modules=bool(base_changed),
        base_changed_files=tuple(base_changed),
    )


def _summary_text(change_set: ChangeSet) -> str:
    changed = [f"  - {name}" for name in change_set.changed_modules] or ["  (none)"]
    lines = [
        "Change Detection Summary",
        "========================",
        "",
        f"Base Branch: {change_set.base_branch}",
        f"Total Modules: {len(change_set.modules)}",
        f"Changed Modules: {len(change_set.changed_modules)}",
        "",
        f"Changed Files: {len(change_set.changed_files)}",
        "",
        "Modules with Changes:",
        *changed,
        "",
        "All Modules:",
        *(f"  - {name}" for name in change_set.modules),
    ]
    return "\n".join(lines)


def write_change_artifacts(out_dir: Path, change_set: ChangeSet) -> list[Path]:
    """Write the troubleshooting artifacts for a detection run."""
    out_dir.mkdir(parents=True, exist_ok=True)
    contents = {
        "change-detection.json": orjson.dumps(
            change_set.model_dump(mode="json"),
            option=orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2,
        ).decode("utf-8"),
        "changed-modules.txt": "\n".join(change_set.changed_modules),
        "maven-pl.txt": ",".join(change_set.changed_modules),
        "changed-files.txt": "\n".join(change_set.changed_files),
        "summary.txt": _summary_text(change_set),
    }

    written: list[Path] = []
    for name in ARTIFACT_FILES:
        path = out_dir / name
        path.write_text(contents[name], encoding="utf-8")
        written.append(path)
    return written


__all__ = [
    "ARTIFACT_FILES",
    "ChangeSet",
    "GitError",
    "changed_files",
    "detect_changes",
    "is_base_file",
    "is_ci_push",
    "run_git",
    "map_files_to_modules",
    "write_change_artifacts",
]
