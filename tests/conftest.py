from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

import pytest

GROUP_ID = "com.example"

RepoFactory = Callable[..., Path]


def _dependency_xml(artifact_id: str, group_id: str) -> str:
    return (
        "    <dependency>\n"
        f"      <groupId>{group_id}</groupId>\n"
        f"      <artifactId>{artifact_id}</artifactId>\n"
        f"      <version>1.0.0-SNAPSHOT</version>\n"
        "    </dependency>\n"
    )


def write_root_pom(root: Path, modules: Sequence[str], group_id: str = GROUP_ID) -> None:
    listed = "".join(f"    <module>{name}</module>\n" for name in modules)
    (root / "pom.xml").write_text(
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<project xmlns="http://maven.apache.org/POM/4.0.0">\n'
        "  <modelVersion>4.0.0</modelVersion>\n"
        f"  <groupId>{group_id}</groupId>\n"
        "  <artifactId>root</artifactId>\n"
        "  <version>1.0.0-SNAPSHOT</version>\n"
        "  <packaging>pom</packaging>\n"
        f"  <modules>\n{listed}  </modules>\n"
        "</project>\n",
        encoding="utf-8",
    )


def write_module_pom(
    root: Path,
    name: str,
    deps: Sequence[str] = (),
    *,
    group_id: str = GROUP_ID,
    version: str | None = "1.0.0-SNAPSHOT",
    external: Sequence[str] = (),
) -> Path:
    module_dir = root / name
    module_dir.mkdir(parents=True, exist_ok=True)
    dependencies = "".join(_dependency_xml(dep, group_id) for dep in deps)
    dependencies += "".join(_dependency_xml(dep, "org.thirdparty") for dep in external)
    version_xml = f"  <version>{version}</version>\n" if version else ""
    (module_dir / "pom.xml").write_text(
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<project xmlns="http://maven.apache.org/POM/4.0.0">\n'
        "  <modelVersion>4.0.0</modelVersion>\n"
        "  <parent>\n"
        f"    <groupId>{group_id}</groupId>\n"
        "    <artifactId>root</artifactId>\n"
        "    <version>1.0.0-SNAPSHOT</version>\n"
        "  </parent>\n"
        f"  <artifactId>{name}</artifactId>\n"
        f"{version_xml}"
        f"  <name>{name}</name>\n"
        f"  <dependencies>\n{dependencies}  </dependencies>\n"
        "</project>\n",
        encoding="utf-8",
    )
    return module_dir


@pytest.fixture
def make_repo(tmp_path: Path) -> RepoFactory:
    """Create a repository from a mapping of module name to internal dependencies."""

    def _make(modules: Mapping[str, Sequence[str]], **kwargs: object) -> Path:
        root = tmp_path / "repo"
        root.mkdir(exist_ok=True)
        write_root_pom(root, list(modules))
        for name, deps in modules.items():
            write_module_pom(root, name, deps, **kwargs)  # type: ignore[arg-type]
        return root

    return _make
