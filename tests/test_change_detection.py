from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import orjson
import pytest

import changes.detect as detect
from changes.detect import (
    ARTIFACT_FILES,
    GitError,
    changed_files,
    detect_changes,
    is_base_file,
    map_files_to_modules,
    write_change_artifacts,
)


class FakeGit:
    def __init__(self, responses: dict[str, str | Exception]) -> None:
        self.responses = responses
        self.calls: list[list[str]] = []

    def __call__(self, args: Sequence[str], cwd: Path) -> str:
        self.calls.append(list(args))
        response = self.responses.get(" ".join(args), "")
        if isinstance(response, Exception):
            raise response
        return response


def test_is_base_file() -> None:
    assert is_base_file("pom.xml")
    assert is_base_file(".github/workflows/ci.yml")
    assert not is_base_file("core/pom.xml")
    assert not is_base_file("scripts")


def test_map_files_to_modules_dedupes_in_order() -> None:
    files = ["web/src/App.java", "core/a.java", "web/pom.xml", "docs/readme.md", "core2/x"]

    assert map_files_to_modules(files, ["core", "core2", "web"]) == ["web", "core", "core2"]


def test_changed_files_diffs_against_base(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    fake = FakeGit({"diff --name-only main...HEAD": "core/a.java\n\nweb/b.ts\n"})
    monkeypatch.setattr(detect, "run_git", fake)

    files = changed_files(tmp_path, "main", environ={})

    assert files == ["core/a.java", "web/b.ts"]
    assert fake.calls[0] == ["fetch", "origin", "main:main"]


def test_changed_files_on_ci_push_uses_previous_commit(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    fake = FakeGit({"diff --name-only HEAD~1": "core/a.java\n"})
    monkeypatch.setattr(detect, "run_git", fake)

    files = changed_files(
        tmp_path, "main", environ={"CI": "true", "GITHUB_EVENT_NAME": "push"}
    )

    assert files == ["core/a.java"]
    assert fake.calls == [["diff", "--name-only", "HEAD~1"]]


def test_changed_files_falls_back_to_working_tree(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    fake = FakeGit(
        {
            "fetch origin main:main": GitError("offline"),
            "diff --name-only main...HEAD": GitError("unknown revision"),
            "diff --name-only HEAD": "web/b.ts\n",
        }
    )
    monkeypatch.setattr(detect, "run_git", fake)

    assert changed_files(tmp_path, "main", environ={}) == ["web/b.ts"]


def test_changed_files_gives_up_quietly(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def broken(args: Sequence[str], cwd: Path) -> str:
        raise GitError("not a git repository")

    monkeypatch.setattr(detect, "run_git", broken)

    assert changed_files(tmp_path, "main", environ={}) == []


def test_base_change_selects_all_modules(tmp_path: Path) -> None:
    change_set = detect_changes(
        tmp_path, ["core", "web"], files=["pnpm-lock.yaml", "core/a.java"]
    )

    assert change_set.all_modules
    assert change_set.changed_modules == ("core", "web")
    assert change_set.base_changed_files == ("pnpm-lock.yaml",)


def test_module_changes_only(tmp_path: Path) -> None:
    change_set = detect_changes(tmp_path, ["core", "web"], files=["web/src/x.ts"])

    assert not change_set.all_modules
    assert change_set.changed_modules == ("web",)


def test_write_change_artifacts(tmp_path: Path) -> None:
    change_set = detect_changes(
        tmp_path, ["core", "api", "web"], base_branch="develop", files=["core/a", "api/b"]
    )
    out_dir = tmp_path / "out"

    written = write_change_artifacts(out_dir, change_set)

    assert [p.name for p in written] == list(ARTIFACT_FILES)
    assert (out_dir / "maven-pl.txt").read_text(encoding="utf-8") == "core,api"
    assert (out_dir / "changed-modules.txt").read_text(encoding="utf-8") == "core\napi"
    data = orjson.loads((out_dir / "change-detection.json").read_bytes())
    assert data["base_branch"] == "develop"
    assert data["changed_modules"] == ["core", "api"]
    summary = (out_dir / "summary.txt").read_text(encoding="utf-8")
    assert "Base Branch: develop" in summary
    assert "Changed Modules: 2" in summary
