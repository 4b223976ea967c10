"""Reading and writing the version fields of package.json and pom.xml."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

import orjson

from registry.descriptors import POM_FILENAME, DescriptorError, parse_pom
from utils import snapshot_version

if TYPE_CHECKING:
    from pathlib import Path

PACKAGE_JSON = "package.json"

_PARENT_END = re.compile(r"</parent>")
_VERSION_AFTER_PARENT = re.compile(r"(</parent>[\s\S]*?<version>)[^<]+(</version>)")
_VERSION_AFTER_ARTIFACT = re.compile(
    r"(<artifactId>[^<]+</artifactId>[\s\S]*?<version>)[^<]+(</version>)"
)


def read_package_json(module_dir: Path) -> dict[str, Any] | None:
    path = module_dir / PACKAGE_JSON
    if not path.is_file():
        return None
    try:
        data = orjson.loads(path.read_bytes())
    except (OSError, orjson.JSONDecodeError):
        return None
    return data if isinstance(data, dict) else None


def read_package_version(module_dir: Path) -> str | None:
    data = read_package_json(module_dir)
    if data is None:
        return None
    version = data.get("version")
    return version if isinstance(version, str) and version else None


def read_pom_version(module_dir: Path) -> str | None:
    """Version declared by the project itself (not inherited from its parent)."""
    path = module_dir / POM_FILENAME
    if not path.is_file():
        return None
    try:
        return parse_pom(path).declared_version
    except DescriptorError:
        return None


def write_package_json(module_dir: Path, data: dict[str, Any]) -> Path:
    path = module_dir / PACKAGE_JSON
    path.write_bytes(orjson.dumps(data, option=orjson.OPT_INDENT_2) + b"\n")
    return path


def replace_pom_version(pom_xml: str, version: str) -> str | None:
    """Replace the project version in pom text, or None when no version is found.

    With a <parent> block, the first <version> after it is the project's; the
    parent's own version is left alone.
    """
    maven_version = snapshot_version(version)
    pattern = (
        _VERSION_AFTER_PARENT if _PARENT_END.search(pom_xml) else _VERSION_AFTER_ARTIFACT
    )
    if not pattern.search(pom_xml):
        return None
    return pattern.sub(
        lambda m: f"{m.group(1)}{maven_version}{m.group(2)}", pom_xml, count=1
    )


def update_pom_version(module_dir: Path, version: str) -> bool:
    path = module_dir / POM_FILENAME
    if not path.is_file():
        return False
    updated = replace_pom_version(path.read_text(encoding="utf-8"), version)
    if updated is None:
        return False
    path.write_text(updated, encoding="utf-8")
    return True


def update_package_version(module_dir: Path, version: str) -> bool:
    data = read_package_json(module_dir)
    if data is None:
        return False
    data["version"] = version
    write_package_json(module_dir, data)
    return True


__all__ = [
    "PACKAGE_JSON",
    "read_package_json",
    "read_package_version",
    "read_pom_version",
    "replace_pom_version",
    "update_package_version",
    "update_pom_version",
    "write_package_json",
]
