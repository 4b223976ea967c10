from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

CONFIG_FILENAME = "monobuild.toml"

DEFAULT_INTERESTING_MARKERS = (
    "BUILD",
    "ERROR",
    "Compiling",
    "Tests run",
    "Results :",
    "FAILURE",
    "SUCCESS",
    "Downloaded",
    "Installing",
    "Uploading",
)

DEFAULT_BASE_PATHS = (
    "pom.xml",
    "scripts/",
    ".github/",
    "package.json",
    "pnpm-lock.yaml",
    "pnpm-workspace.yaml",
    ".mvn/",
    "mvnw",
    "mvnw.cmd",
)

BuildMode = Literal["module", "level"]


class _StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class BuildDefaults(_StrictModel):
    """Defaults for the build command, overridable from the CLI."""

    goal: str = Field(default="install", description="Maven goal to execute")
    max_parallel: int = Field(
        default=4,
        ge=1,
        description="Maximum concurrent builds within one level",
    )
    skip_tests: bool = Field(default=True, description="Pass -DskipTests")
    offline: bool = Field(default=False, description="Pass --offline")
    timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Wall-clock bound per module (or per level in level mode)",
    )
    mode: BuildMode = Field(
        default="module",
        description="One subprocess per module, or one per level",
    )
    executable: str = Field(
        default="mvn",
        description="Build tool executable when no ./mvnw wrapper exists",
    )
    install_parent: bool = Field(
        default=True,
        description="Install the root descriptor once before the first level",
    )
    strict_cycles: bool = Field(
        default=False,
        description="Abort instead of building cyclic modules in one final level",
    )


class ChangesConfig(_StrictModel):
    """Configuration for git based change detection."""

    base_branch: str = Field(default="main", description="Branch to diff against")
    base_paths: list[str] = Field(
        default_factory=lambda: list(DEFAULT_BASE_PATHS),
        description="Paths whose change marks every module as changed",
    )


class OutputConfig(_StrictModel):
    """Console output settings for build subprocesses."""

    markers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_INTERESTING_MARKERS),
        description="Substrings that make a stdout line worth displaying",
    )
    color: bool | None = Field(
        default=None,
        description="Force ANSI colors on/off (default: only on a TTY)",
    )
    tail_lines: int = Field(
        default=50,
        ge=1,
        description="Number of trailing output lines kept per result",
    )


class DownstreamConfig(_StrictModel):
    """Settings for downstream pull request creation."""

    work_dir: str = Field(
        default="/tmp/downstream-prs",
        description="Where dependent repositories are cloned",
    )
    api_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL",
    )
    author_name: str = Field(default="github-actions[bot]")
    author_email: str = Field(
        default="github-actions[bot]@users.noreply.github.com"
    )
    request_timeout: float = Field(default=30.0, gt=0)


class MonobuildConfig(_StrictModel):
    """Configuration for monobuild, read from monobuild.toml."""

    output_dir: str = Field(
        default=".monobuild",
        description="Directory for build logs and change detection artifacts",
    )
    internal_group_ids: list[str] = Field(
        default_factory=list,
        description=(
            "Namespaces treated as internal (empty = each module's parent groupId)"
        ),
    )
    build: BuildDefaults = Field(default_factory=BuildDefaults)
    changes: ChangesConfig = Field(default_factory=ChangesConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    downstream: DownstreamConfig = Field(default_factory=DownstreamConfig)

    @field_validator("internal_group_ids", mode="before")
    @classmethod
    def validate_internal_group_ids(cls, v: Any) -> Any:
        """Accept a single string as a one-element list."""

        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v


class ConfigError(Exception):
    """Raised when configuration is invalid or a run cannot be set up."""


def resolve_output_dir(root: Path, output_dir: str) -> Path:
    """Resolve a config-provided output_dir safely within the repo root.

    The config output_dir must be a non-empty relative path that remains
    within the repository root after resolution. Absolute paths and paths
    that escape the root are rejected.
    """
    if not output_dir:
        msg = "output_dir must be a non-empty relative path"
        raise ConfigError(msg)

    if output_dir.startswith("~"):
        msg = "output_dir must be a relative path within the repo root"
        raise ConfigError(msg)

    output_path = Path(output_dir)
    if output_path.is_absolute():
        msg = "output_dir must be a relative path within the repo root"
        raise ConfigError(msg)

    try:
        resolved_root = root.resolve()
        resolved_output = (resolved_root / output_path).resolve()
    except OSError as exc:
        msg = f"Failed to resolve output_dir '{output_dir}': {exc}"
        raise ConfigError(msg) from exc

    try:
        resolved_output.relative_to(resolved_root)
    except ValueError as exc:
        msg = f"output_dir '{output_dir}' escapes the repository root"
        raise ConfigError(msg) from exc

    return resolved_output


def load_config(root: Path) -> MonobuildConfig:
    """Load configuration from monobuild.toml if it exists."""
    config_path = Path(root) / CONFIG_FILENAME

    if not config_path.is_file():
        return MonobuildConfig()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return MonobuildConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise ConfigError(msg) from e
