"""Level-by-level build execution with bounded concurrency."""

from __future__ import annotations

import logging
import re
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import TYPE_CHECKING, Protocol

from execute.command import (
    format_command,
    level_command,
    module_command,
    parent_install_command,
    resolve_executable,
)
from execute.models import (
    EXIT_LAUNCH_ERROR,
    EXIT_TIMED_OUT,
    BuildResult,
    BuildStatus,
)
from execute.output import BOLD, CYAN, GREEN, RED, Console, ModuleFormatter
from execute.process import ProcessOutcome, run_process
from report.summary import RunSummary
from rules.config import DEFAULT_INTERESTING_MARKERS

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from pathlib import Path

    from execute.models import BuildOptions
    from execute.process import LineCallback
    from graph.levels import BuildLevel

logger = logging.getLogger(__name__)

PARENT_LABEL = "parent"
# Leading underscore keeps the parent log apart from a module named "parent".
PARENT_LOG_LABEL = "_parent"
PARENT_FAILED_DETAIL = "parent descriptor installation failed"


class Launcher(Protocol):
    def __call__(
        self,
        argv: Sequence[str],
        *,
        cwd: Path,
        timeout: float | None = None,
        on_line: LineCallback | None = None,
        log_path: Path | None = None,
        tail_lines: int = 50,
    ) -> ProcessOutcome: ...


def _log_name(label: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]+", "__", label) + ".log"


def _failure_detail(outcome: ProcessOutcome) -> str:
    if outcome.exit_code is not None and outcome.exit_code < 0:
        return f"terminated by signal {-outcome.exit_code}"
    return f"exited with code {outcome.exit_code}"


def reactor_statuses(
    lines: Sequence[str], names: Mapping[str, Sequence[str]]
) -> dict[str, str]:
    """Best-effort read of per-module outcomes from a reactor summary.

    Only used to enrich failure details of a whole-level invocation; the
    exit code stays the authority on success.
    """
    found: dict[str, str] = {}
    for module, aliases in names.items():
        for alias in aliases:
            pattern = re.compile(
                rf"(?<![\w.-]){re.escape(alias)}(?![\w-])[^\n]*?\b(SUCCESS|FAILURE|SKIPPED)\b",
                re.IGNORECASE,
            )
            for line in lines:
                match = pattern.search(line)
                if match:
                    found[module] = match.group(1).upper()
            if module in found:
                break
    return found


class BuildExecutor:
    """Runs build levels in order, with at most ``max_parallel`` builds per level.

    In ``module`` mode every module gets its own subprocess and a pool slot;
    in ``level`` mode a whole level is one subprocess and the build tool's own
    thread count is bounded instead. A level that contains any failure stops
    the run: its running builds finish, later levels are recorded as skipped.
    """

    def __init__(
        self,
        root: Path,
        options: BuildOptions,
        *,
        console: Console | None = None,
        markers: Sequence[str] = DEFAULT_INTERESTING_MARKERS,
        log_dir: Path | None = None,
        tail_lines: int = 50,
        aliases: Mapping[str, Sequence[str]] | None = None,
        launcher: Launcher = run_process,
    ) -> None:
        self.root = root
        self.options = options
        self.console = console if console is not None else Console()
        self.markers = tuple(markers)
        self.log_dir = log_dir
        self.tail_lines = tail_lines
        self.aliases = dict(aliases or {})
        self.launcher = launcher
        self.executable = resolve_executable(root, options.executable)

        self.states: dict[str, BuildStatus] = {}
        self.peak_running = 0
        self._running = 0
        self._lock = threading.Lock()

    def _set_state(self, names: Sequence[str], state: BuildStatus) -> None:
        with self._lock:
            for name in names:
                self.states[name] = state

    def _start(self, name: str) -> None:
        with self._lock:
            self.states[name] = BuildStatus.RUNNING
            self._running += 1
            self.peak_running = max(self.peak_running, self._running)

    def _finish(self, name: str, state: BuildStatus) -> None:
        with self._lock:
            self.states[name] = state
            self._running -= 1

    def _log_path(self, label: str) -> Path | None:
        if self.log_dir is None:
            return None
        return self.log_dir / _log_name(label)

    def _launch(
        self,
        argv: Sequence[str],
        formatter: ModuleFormatter,
        log_path: Path | None,
    ) -> ProcessOutcome:
        logger.debug("Running %s", format_command(argv))
        return self.launcher(
            argv,
            cwd=self.root,
            timeout=self.options.timeout_seconds,
            on_line=formatter.handle_line,
            log_path=log_path,
            tail_lines=self.tail_lines,
        )

    def install_parent(self) -> bool:
        """Install the root descriptor once, before any level starts.

        Module builds run without -am and resolve the parent from the local
        repository.
        """
        formatter = self.console.formatter(PARENT_LABEL, 0, self.markers)
        argv = parent_install_command(self.executable, self.options)
        formatter.emit("Installing parent descriptor to local repository...")
        outcome = self._launch(argv, formatter, self._log_path(PARENT_LOG_LABEL))

        ok = (
            outcome.launch_error is None
            and not outcome.timed_out
            and outcome.exit_code == 0
        )
        if ok:
            formatter.emit(self.console.paint("Parent descriptor installed", GREEN))
        else:
            reason = outcome.launch_error or (
                "timed out" if outcome.timed_out else _failure_detail(outcome)
            )
            formatter.emit(
                self.console.paint(f"Failed to install parent descriptor: {reason}", RED)
            )
        return ok

    def _result_from(
        self,
        name: str,
        outcome: ProcessOutcome,
        *,
        level: int,
        log_path: Path | None,
        duration: float | None = None,
        apportioned: bool = False,
        detail: str | None = None,
    ) -> BuildResult:
        if outcome.launch_error is not None:
            status = BuildStatus.LAUNCH_ERROR
            exit_code = EXIT_LAUNCH_ERROR
            error_detail = f"could not start build: {outcome.launch_error}"
        elif outcome.timed_out:
            status = BuildStatus.TIMED_OUT
            exit_code = EXIT_TIMED_OUT
            error_detail = f"timed out after {self.options.timeout_seconds}s"
        elif outcome.exit_code == 0:
            status = BuildStatus.SUCCEEDED
            exit_code = 0
            error_detail = None
        else:
            status = BuildStatus.FAILED
            exit_code = outcome.exit_code if outcome.exit_code is not None else 1
            error_detail = _failure_detail(outcome)

        if detail and error_detail:
            error_detail = f"{error_detail} ({detail})"

        return BuildResult(
            module_name=name,
            status=status,
            duration_seconds=max(
                0.0, outcome.duration_seconds if duration is None else duration
            ),
            exit_code=exit_code,
            error_detail=error_detail,
            level=level,
            apportioned=apportioned,
            log_path=str(log_path) if log_path is not None and log_path.exists() else None,
            output_tail=outcome.tail,
        )

    def _build_module(self, name: str, index: int, level: int) -> BuildResult:
        formatter = self.console.formatter(name, index, self.markers)
        log_path = self._log_path(name)
        argv = module_command(self.executable, name, self.options)

        self._start(name)
        formatter.emit("Starting build...")
        try:
            outcome = self._launch(argv, formatter, log_path)
        except Exception as exc:
            logger.exception("Unexpected error while building %s", name)
            outcome = ProcessOutcome(
                exit_code=None, duration_seconds=0.0, launch_error=repr(exc)
            )

        result = self._result_from(name, outcome, level=level, log_path=log_path)
        self._finish(name, result.status)

        painted = self.console.paint(
            result.status.value.upper(), GREEN if result.success else RED
        )
        formatter.emit(f"Build {painted} ({result.duration_seconds:.2f}s)")
        return result

    def _run_level_modules(self, level: BuildLevel) -> list[BuildResult]:
        workers = min(self.options.max_parallel, len(level.modules))
        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix=f"level-{level.index}"
        ) as pool:
            futures = [
                pool.submit(self._build_module, name, index, level.index)
                for index, name in enumerate(level.modules)
            ]
            wait(futures)
        return [future.result() for future in futures]

    def _run_level_batch(self, level: BuildLevel) -> list[BuildResult]:
        label = f"level-{level.index + 1}"
        formatter = self.console.formatter(label, level.index, self.markers)
        log_path = self._log_path(label)
        argv = level_command(self.executable, level.modules, self.options)

        formatter.emit(f"Building: {', '.join(level.modules)}")
        formatter.emit(f"Command: {format_command(argv)}")

        with self._lock:
            self._running += 1
            self.peak_running = max(self.peak_running, self._running)
        self._set_state(level.modules, BuildStatus.RUNNING)
        try:
            outcome = self._launch(argv, formatter, log_path)
        except Exception as exc:
            logger.exception("Unexpected error while building level %s", level.index + 1)
            outcome = ProcessOutcome(
                exit_code=None, duration_seconds=0.0, launch_error=repr(exc)
            )
        finally:
            with self._lock:
                self._running -= 1

        # One invocation covers the whole level: the per-module duration is an
        # even share, not a measurement.
        share = outcome.duration_seconds / len(level.modules)
        reported: dict[str, str] = {}
        if outcome.exit_code not in (0, None):
            names = {
                name: [name, *self.aliases.get(name, ())] for name in level.modules
            }
            reported = reactor_statuses(outcome.tail, names)

        results: list[BuildResult] = []
        for name in level.modules:
            hint = reported.get(name)
            result = self._result_from(
                name,
                outcome,
                level=level.index,
                log_path=log_path,
                duration=share,
                apportioned=True,
                detail=f"reactor summary reports {hint}" if hint else None,
            )
            self._set_state([name], result.status)
            results.append(result)

        painted = self.console.paint(
            "SUCCESS" if outcome.exit_code == 0 else "FAILED",
            GREEN if outcome.exit_code == 0 else RED,
        )
        formatter.emit(f"Level {painted} ({outcome.duration_seconds:.2f}s)")
        return results

    def _skip(
        self, levels: Sequence[BuildLevel], detail: str
    ) -> list[BuildResult]:
        skipped: list[BuildResult] = []
        for level in levels:
            for name in level.modules:
                skipped.append(BuildResult.skipped(name, level=level.index, detail=detail))
            self._set_state(level.modules, BuildStatus.SKIPPED)
        return skipped

    def execute_levels(self, levels: Sequence[BuildLevel]) -> RunSummary:
        """Build every level in order and return the finalized summary."""
        summary = RunSummary()
        for level in levels:
            self._set_state(level.modules, BuildStatus.PENDING)

        if not any(level.modules for level in levels):
            return summary.finalize()

        if self.options.install_parent and not self.install_parent():
            self.console.write_line(
                self.console.paint("Failed to install parent descriptor. Aborting build.", RED)
            )
            summary.record(self._skip(levels, PARENT_FAILED_DETAIL))
            return summary.finalize()

        for position, level in enumerate(levels):
            if not level.modules:
                continue
            self.console.write_line()
            self.console.write_line(
                self.console.paint(
                    f"Building Level {level.index + 1}/{len(levels)}", BOLD
                )
            )
            if level.cyclic:
                self.console.write_line(
                    self.console.paint(
                        "Level contains a dependency cycle; relying on the build "
                        "tool's own ordering",
                        CYAN,
                    )
                )

            if self.options.mode == "level":
                results = self._run_level_batch(level)
            else:
                results = self._run_level_modules(level)
            summary.record(results)

            if not all(result.success for result in results):
                self.console.write_line(
                    self.console.paint(
                        f"Level {level.index + 1} failed. Stopping build.", RED
                    )
                )
                summary.record(
                    self._skip(
                        levels[position + 1 :],
                        f"skipped due to upstream failure in level {level.index + 1}",
                    )
                )
                break

        return summary.finalize()


__all__ = ["BuildExecutor", "Launcher", "reactor_statuses"]
