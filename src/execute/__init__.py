"""Build execution: subprocess launching, output handling and result models."""

from execute.models import (
    EXIT_LAUNCH_ERROR,
    EXIT_SKIPPED,
    EXIT_TIMED_OUT,
    BuildOptions,
    BuildResult,
    BuildStatus,
)
from execute.process import ProcessOutcome, run_process

__all__ = [
    "EXIT_LAUNCH_ERROR",
    "EXIT_SKIPPED",
    "EXIT_TIMED_OUT",
    "BuildOptions",
    "BuildResult",
    "BuildStatus",
    "ProcessOutcome",
    "run_process",
]
