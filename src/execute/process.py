"""Bounded subprocess execution with streamed, captured output.

Behavior:
- Runs one command in its own session so the whole process tree can be
  killed.
- Reads stdout and stderr on background threads; every line goes to the
  optional log file, a bounded tail and the ``on_line`` callback.
- On wall-clock timeout, kills the process group and reports ``timed_out``.
- A command that cannot be started is reported through ``launch_error``
  instead of raising.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import IO, TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

    from execute.output import StreamName

    LineCallback = Callable[[str, StreamName], None]

logger = logging.getLogger(__name__)

KILL_GRACE_SECONDS = 5.0
READER_JOIN_SECONDS = 1.0


@dataclass(frozen=True)
class ProcessOutcome:
    exit_code: int | None
    duration_seconds: float
    timed_out: bool = False
    launch_error: str | None = None
    tail: tuple[str, ...] = ()


def _kill_process_group(proc: subprocess.Popen[str]) -> None:
    """Best-effort kill of the process group."""
    killpg = getattr(os, "killpg", None)
    try:
        if killpg is not None:
            killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except ProcessLookupError:
        return
    except PermissionError:
        # Fall back to process-only kill.
        try:
            proc.kill()
        except ProcessLookupError:
            return


def _open_log(log_path: Path | None) -> TextIO | None:
    if log_path is None:
        return None
    log_path.parent.mkdir(parents=True, exist_ok=True)
    return log_path.open("w", encoding="utf-8")


def run_process(
    argv: Sequence[str],
    *,
    cwd: Path,
    timeout: float | None = None,
    on_line: LineCallback | None = None,
    log_path: Path | None = None,
    tail_lines: int = 50,
) -> ProcessOutcome:
    """Run a command to completion or timeout and describe how it ended."""
    start = time.monotonic()

    try:
        log_handle = _open_log(log_path)
    except OSError as exc:
        return ProcessOutcome(
            exit_code=None,
            duration_seconds=0.0,
            launch_error=f"cannot open log file {log_path}: {exc}",
        )

    try:
        proc = subprocess.Popen(
            list(argv),
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
            bufsize=1,
            start_new_session=True,  # enables killpg
        )
    except OSError as exc:
        if log_handle is not None:
            log_handle.write(f"error: {exc}\n")
            log_handle.close()
        return ProcessOutcome(
            exit_code=None,
            duration_seconds=time.monotonic() - start,
            launch_error=str(exc),
            tail=(f"error: {exc}",),
        )

    tail: deque[str] = deque(maxlen=max(1, tail_lines))
    lock = threading.Lock()

    def _read(pipe: IO[str], stream: StreamName) -> None:
        for raw in pipe:
            line = raw.rstrip("\r\n")
            with lock:
                tail.append(line)
                if log_handle is not None and not log_handle.closed:
                    log_handle.write(line + "\n")
            if on_line is not None:
                on_line(line, stream)

    assert proc.stdout is not None  # for mypy
    assert proc.stderr is not None

    readers = [
        threading.Thread(
            target=_read, args=(proc.stdout, "stdout"), name="build-stdout", daemon=True
        ),
        threading.Thread(
            target=_read, args=(proc.stderr, "stderr"), name="build-stderr", daemon=True
        ),
    ]
    for reader in readers:
        reader.start()

    timed_out = False
    try:
        proc.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        timed_out = True
        _kill_process_group(proc)
        try:
            proc.wait(timeout=KILL_GRACE_SECONDS)
        except subprocess.TimeoutExpired:
            logger.warning("Process %s did not exit after kill", proc.pid)

    duration = time.monotonic() - start

    # Best-effort join; don't block on pipes held open by orphaned children.
    for reader in readers:
        reader.join(timeout=READER_JOIN_SECONDS)

    with lock:
        captured = tuple(tail)
        if log_handle is not None:
            log_handle.close()

    return ProcessOutcome(
        exit_code=proc.returncode,
        duration_seconds=duration,
        timed_out=timed_out,
        tail=captured,
    )


__all__ = ["ProcessOutcome", "run_process"]
