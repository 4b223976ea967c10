from __future__ import annotations

import logging
from pathlib import Path

import pytest

from conftest import RepoFactory, write_root_pom
from registry.descriptors import DescriptorError, parse_pom, read_module_paths
from registry.discovery import (
    RegistryError,
    UnknownModuleError,
    discover_modules,
    select_modules,
)
from rules.config import ConfigError


def test_discover_modules_in_declaration_order(make_repo: RepoFactory) -> None:
    root = make_repo({"core": [], "api": ["core"], "web": ["api"]})

    modules = discover_modules(root)

    assert [m.name for m in modules] == ["core", "api", "web"]
    api = modules[1]
    assert api.artifact_id == "api"
    assert api.group_id == "com.example"
    assert api.namespace == "com.example"
    assert [d.artifact_id for d in api.declared_dependencies] == ["core"]


def test_missing_root_descriptor_raises(tmp_path: Path) -> None:
    with pytest.raises(RegistryError, match="Root pom.xml not found"):
        discover_modules(tmp_path)


def test_declared_module_without_descriptor_raises(tmp_path: Path) -> None:
    write_root_pom(tmp_path, ["ghost"])
    (tmp_path / "ghost").mkdir()

    with pytest.raises(RegistryError, match="ghost"):
        discover_modules(tmp_path)


def test_registry_errors_are_config_errors() -> None:
    assert issubclass(RegistryError, ConfigError)
    assert issubclass(UnknownModuleError, ConfigError)


def test_unparseable_descriptor_is_kept_with_warning(
    make_repo: RepoFactory, caplog: pytest.LogCaptureFixture
) -> None:
    root = make_repo({"core": [], "broken": []})
    (root / "broken" / "pom.xml").write_text("<project><artifactId>", encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="registry.discovery"):
        modules = discover_modules(root)

    broken = next(m for m in modules if m.name == "broken")
    assert not broken.descriptor_ok
    assert broken.declared_dependencies == ()
    assert any("broken" in record.getMessage() for record in caplog.records)


def test_select_modules_keeps_request_order(make_repo: RepoFactory) -> None:
    root = make_repo({"core": [], "api": [], "web": []})
    modules = discover_modules(root)

    selected = select_modules(modules, ["web", "core", "web"])

    assert [m.name for m in selected] == ["web", "core"]


def test_select_unknown_module_lists_known(make_repo: RepoFactory) -> None:
    root = make_repo({"core": [], "api": []})
    modules = discover_modules(root)

    with pytest.raises(UnknownModuleError, match="Known modules: api, core"):
        select_modules(modules, ["nope"])


def test_parse_pom_inherits_group_and_version(make_repo: RepoFactory) -> None:
    root = make_repo({"core": []}, version=None)

    descriptor = parse_pom(root / "core" / "pom.xml")

    assert descriptor.group_id == "com.example"
    assert descriptor.version == "1.0.0-SNAPSHOT"
    assert descriptor.declared_version is None
    assert descriptor.packaging == "jar"


def test_parse_pom_rejects_non_project(tmp_path: Path) -> None:
    pom = tmp_path / "pom.xml"
    pom.write_text("<settings/>", encoding="utf-8")

    with pytest.raises(DescriptorError, match="expected <project>"):
        parse_pom(pom)


def test_read_module_paths_falls_back_on_malformed_root(tmp_path: Path) -> None:
    pom = tmp_path / "pom.xml"
    pom.write_text(
        "<project><modules><module>a</module><module> b </module></modules>&</project>",
        encoding="utf-8",
    )

    assert read_module_paths(pom) == ["a", "b"]
