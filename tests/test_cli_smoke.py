from __future__ import annotations

import stat
import sys
from collections.abc import Sequence
from pathlib import Path

import orjson
import pytest

import changes.detect as detect
from cli import main
from conftest import RepoFactory

FAKE_WRAPPER = """#!{python}
import os
import sys

args = sys.argv[1:]
print("[INFO] Running " + " ".join(args))
fail = os.environ.get("MONOBUILD_TEST_FAIL")
if fail and "-pl" in args and fail in args[args.index("-pl") + 1].split(","):
    print("[ERROR] BUILD FAILURE")
    sys.exit(1)
print("[INFO] BUILD SUCCESS")
"""


def _install_wrapper(root: Path) -> None:
    wrapper = root / "mvnw"
    wrapper.write_text(FAKE_WRAPPER.format(python=sys.executable), encoding="utf-8")
    wrapper.chmod(wrapper.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


@pytest.fixture
def repo(make_repo: RepoFactory) -> Path:
    root = make_repo({"core": [], "api": ["core"], "web": ["api"], "tools": []})
    _install_wrapper(root)
    return root


def test_cli_build_all_smoke(repo: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = main(["--root", str(repo), "build", "--all", "-p", "2"])

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "Level 1: core, tools" in out
    assert "Level 3: web" in out
    assert "Build Summary" in out
    assert "Successful: 4" in out
    assert (repo / ".monobuild" / "logs" / "core.log").is_file()


def test_cli_build_failure_skips_dependents(
    repo: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("MONOBUILD_TEST_FAIL", "api")

    exit_code = main(["--root", str(repo), "build", "--modules", "core,api,web"])

    assert exit_code == 1
    out = capsys.readouterr().out
    assert "Successful: 1" in out
    assert "Failed: 1" in out
    assert "Skipped: 1" in out


def test_cli_build_json_report(repo: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = main(["--root", str(repo), "build", "--modules", "tools", "--format", "json"])

    assert exit_code == 0
    payload = orjson.loads(capsys.readouterr().out)
    assert payload["total"] == 1
    assert payload["results"][0]["module_name"] == "tools"


def test_cli_build_unknown_module(repo: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = main(["--root", str(repo), "build", "--modules", "nope"])

    assert exit_code == 1
    assert "error: Unknown module(s): nope" in capsys.readouterr().err


def test_cli_build_without_changes_does_nothing(
    repo: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    def no_changes(args: Sequence[str], cwd: Path) -> str:
        return ""

    monkeypatch.setattr(detect, "run_git", no_changes)

    exit_code = main(["--root", str(repo), "build"])

    assert exit_code == 0
    assert "No changed modules detected. Nothing to build." in capsys.readouterr().out


def test_cli_missing_root_descriptor(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = main(["--root", str(tmp_path), "build", "--all"])

    assert exit_code == 1
    assert "error: Root pom.xml not found" in capsys.readouterr().err


def test_cli_invalid_config(repo: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (repo / "monobuild.toml").write_text("bogus = 1\n", encoding="utf-8")

    exit_code = main(["--root", str(repo), "build", "--all"])

    assert exit_code == 1
    assert "error: Invalid config" in capsys.readouterr().err


@pytest.mark.parametrize("flags", [["-p", "0"], ["--timeout", "-1"]])
def test_cli_invalid_build_options(
    repo: Path, capsys: pytest.CaptureFixture[str], flags: list[str]
) -> None:
    exit_code = main(["--root", str(repo), "build", "--all", *flags])

    assert exit_code == 1
    assert "error: Invalid build options" in capsys.readouterr().err


def test_cli_deps(repo: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = main(["--root", str(repo), "deps"])

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "Module Dependency Tree" in out
    assert "└── core" in out
    assert "Level 2: api" in out
    assert "Build order: core, api, web, tools" in out


def test_cli_status_and_init(repo: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--root", str(repo), "status", "--quiet"]) == 1

    assert main(["--root", str(repo), "init"]) == 0
    assert "Created: 4 | Skipped: 0" in capsys.readouterr().out

    assert main(["--root", str(repo), "status", "--json"]) == 0
    statuses = orjson.loads(capsys.readouterr().out)
    assert all(status["match"] for status in statuses)


def test_cli_changed_writes_artifacts(
    repo: Path,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    def diff(args: Sequence[str], cwd: Path) -> str:
        return "api/src/Main.java\n" if args[0] == "diff" else ""

    monkeypatch.setattr(detect, "run_git", diff)
    out_dir = tmp_path / "changes"

    exit_code = main(["--root", str(repo), "detect-changes", "--csv", "--output", str(out_dir)])

    assert exit_code == 0
    assert capsys.readouterr().out.strip() == "api"
    assert (out_dir / "maven-pl.txt").read_text(encoding="utf-8") == "api"


def test_cli_downstream_requires_token(
    repo: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)

    exit_code = main(
        ["--root", str(repo), "downstream", "-m", "core", "--target-version", "2.0.0"]
    )

    assert exit_code == 1
    assert "GITHUB_TOKEN" in capsys.readouterr().err


def test_cli_downstream_without_dependents(
    repo: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = main(
        [
            "--root",
            str(repo),
            "notify-downstream",
            "-m",
            "core",
            "--target-version",
            "2.0.0",
            "--dry-run",
        ]
    )

    assert exit_code == 0
    assert "No dependents configured" in capsys.readouterr().out
