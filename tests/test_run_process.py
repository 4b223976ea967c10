from __future__ import annotations

import sys
from pathlib import Path

from execute.process import run_process


def _python(code: str) -> list[str]:
    return [sys.executable, "-c", code]


def test_captures_both_streams(tmp_path: Path) -> None:
    seen: list[tuple[str, str]] = []
    log_path = tmp_path / "logs" / "run.log"

    outcome = run_process(
        _python("import sys; print('hello'); print('oops', file=sys.stderr)"),
        cwd=tmp_path,
        on_line=lambda line, stream: seen.append((line, stream)),
        log_path=log_path,
    )

    assert outcome.exit_code == 0
    assert not outcome.timed_out
    assert outcome.launch_error is None
    assert set(outcome.tail) == {"hello", "oops"}
    assert ("hello", "stdout") in seen
    assert ("oops", "stderr") in seen
    assert "hello" in log_path.read_text(encoding="utf-8")


def test_nonzero_exit_code(tmp_path: Path) -> None:
    outcome = run_process(_python("raise SystemExit(3)"), cwd=tmp_path)

    assert outcome.exit_code == 3
    assert not outcome.timed_out


def test_tail_is_bounded(tmp_path: Path) -> None:
    outcome = run_process(
        _python("for i in range(20): print(i)"), cwd=tmp_path, tail_lines=5
    )

    assert outcome.tail == ("15", "16", "17", "18", "19")


def test_timeout_kills_process(tmp_path: Path) -> None:
    outcome = run_process(
        _python("import time; time.sleep(30)"), cwd=tmp_path, timeout=0.5
    )

    assert outcome.timed_out
    assert outcome.duration_seconds < 10


def test_missing_executable_is_launch_error(tmp_path: Path) -> None:
    outcome = run_process(["monobuild-no-such-binary-xyz"], cwd=tmp_path)

    assert outcome.exit_code is None
    assert outcome.launch_error is not None
