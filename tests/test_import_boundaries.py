from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import pytest

SRC = Path(__file__).parent.parent / "src"


def _loaded_after_import(module: str) -> set[str]:
    code = (
        "import sys\n"
        f"sys.path.insert(0, {str(SRC)!r})\n"
        "before = set(sys.modules)\n"
        f"import {module}\n"
        "print('\\n'.join(sorted(set(sys.modules) - before)))\n"
    )
    proc = subprocess.run(
        [sys.executable, "-c", code], capture_output=True, text=True, check=True
    )
    return {line.split(".")[0] for line in proc.stdout.splitlines()}


@pytest.mark.parametrize("module", ["registry", "graph"])
def test_planning_layers_do_not_load_execution(module: str) -> None:
    loaded = _loaded_after_import(module)

    assert not loaded & {"execute", "report", "downstream", "requests", "cli"}


def test_execute_package_does_not_load_executor() -> None:
    loaded = _loaded_after_import("execute")

    assert "report" not in loaded
