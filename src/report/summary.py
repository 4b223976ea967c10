"""Run summary aggregation."""

from __future__ import annotations

import time
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from execute.models import BuildResult, BuildStatus

if TYPE_CHECKING:
    from collections.abc import Iterable


class SummaryFinalizedError(RuntimeError):
    """Raised when results are recorded into a finalized summary."""


@dataclass
class RunSummary:
    """Aggregate of all build results of one invocation.

    Created empty when execution starts, extended once per completed level and
    frozen by `finalize` before reporting.
    """

    results: list[BuildResult] = field(default_factory=list)
    wall_clock_seconds: float = 0.0
    finalized: bool = False
    started_at: float = field(default_factory=time.monotonic, repr=False)

    def record(self, results: Iterable[BuildResult]) -> None:
        if self.finalized:
            msg = "cannot record results into a finalized run summary"
            raise SummaryFinalizedError(msg)
        self.results.extend(results)

    def finalize(self, wall_clock_seconds: float | None = None) -> RunSummary:
        if not self.finalized:
            if wall_clock_seconds is None:
                wall_clock_seconds = time.monotonic() - self.started_at
            self.wall_clock_seconds = max(0.0, wall_clock_seconds)
            self.finalized = True
        return self

    @property
    def counts(self) -> Counter[BuildStatus]:
        return Counter(result.status for result in self.results)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def skipped(self) -> int:
        return self.counts[BuildStatus.SKIPPED]

    @property
    def failed(self) -> int:
        return self.total - self.succeeded - self.skipped

    @property
    def ok(self) -> bool:
        return all(result.success for result in self.results)

    @property
    def exit_code(self) -> int:
        """0 when every module succeeded; skipped modules count as failures."""
        return 0 if self.ok else 1

    def result_for(self, module_name: str) -> BuildResult | None:
        for result in self.results:
            if result.module_name == module_name:
                return result
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "exit_code": self.exit_code,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "wall_clock_seconds": round(self.wall_clock_seconds, 3),
            "results": [result.model_dump(mode="json") for result in self.results],
        }


def summarize(
    results: Iterable[BuildResult], wall_clock_seconds: float | None = None
) -> RunSummary:
    """Build a finalized summary from finished results.

    Without an explicit wall clock, the summed module durations are used.
    """
    summary = RunSummary()
    summary.record(results)
    if wall_clock_seconds is None:
        wall_clock_seconds = sum(result.duration_seconds for result in summary.results)
    return summary.finalize(wall_clock_seconds)


__all__ = ["RunSummary", "SummaryFinalizedError", "summarize"]
