"""Build outcome and option models."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, computed_field

from rules.config import BuildMode, ConfigError

if TYPE_CHECKING:
    from rules.config import BuildDefaults

# Sentinels sit outside both POSIX exit statuses (0..255) and negative
# signal returncodes (-1..-64).
EXIT_SKIPPED = -1000
EXIT_LAUNCH_ERROR = -1001
EXIT_TIMED_OUT = -1002


class BuildStatus(str, Enum):
    """Lifecycle of a single module build."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    LAUNCH_ERROR = "launch_error"
    SKIPPED = "skipped"


class BuildResult(BaseModel):
    """Terminal outcome of one module build."""

    model_config = ConfigDict(frozen=True)

    module_name: str
    status: BuildStatus
    duration_seconds: float = Field(default=0.0, ge=0)
    exit_code: int
    error_detail: str | None = None
    level: int | None = None
    apportioned: bool = Field(
        default=False,
        description="Duration is an even share of a whole-level invocation",
    )
    log_path: str | None = None
    output_tail: tuple[str, ...] = ()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        return self.status is BuildStatus.SUCCEEDED

    @classmethod
    def skipped(cls, module_name: str, *, level: int | None, detail: str) -> BuildResult:
        return cls(
            module_name=module_name,
            status=BuildStatus.SKIPPED,
            exit_code=EXIT_SKIPPED,
            error_detail=detail,
            level=level,
        )


class BuildOptions(BaseModel):
    """Options for one build invocation."""

    goal: str = "install"
    skip_tests: bool = True
    offline: bool = False
    max_parallel: int = Field(default=4, ge=1)
    timeout_seconds: float | None = Field(default=None, gt=0)
    mode: BuildMode = "module"
    executable: str = "mvn"
    install_parent: bool = True
    also_make: bool = Field(
        default=False,
        description="Let the build tool also build prerequisites (standalone only)",
    )

    @classmethod
    def from_defaults(cls, defaults: BuildDefaults, **overrides: Any) -> BuildOptions:
        """Merge config defaults with explicit overrides; None means unset.

        Raises:
            ConfigError: If the merged options are out of range.
        """
        values: dict[str, Any] = {
            "goal": defaults.goal,
            "skip_tests": defaults.skip_tests,
            "offline": defaults.offline,
            "max_parallel": defaults.max_parallel,
            "timeout_seconds": defaults.timeout_seconds,
            "mode": defaults.mode,
            "executable": defaults.executable,
            "install_parent": defaults.install_parent,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        try:
            return cls.model_validate(values)
        except ValidationError as e:
            msg = f"Invalid build options: {e}"
            raise ConfigError(msg) from e


__all__ = [
    "EXIT_LAUNCH_ERROR",
    "EXIT_SKIPPED",
    "EXIT_TIMED_OUT",
    "BuildOptions",
    "BuildResult",
    "BuildStatus",
]
