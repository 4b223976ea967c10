"""Descriptor (pom.xml) parsing."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING
from xml.etree import ElementTree as ET

from pydantic import ValidationError

from registry.models import (
    DEFAULT_GROUP_ID,
    DEFAULT_PACKAGING,
    DEFAULT_VERSION,
    DependencyRef,
    PomDescriptor,
)

if TYPE_CHECKING:
    from pathlib import Path

POM_FILENAME = "pom.xml"

_MODULE_TAG = re.compile(r"<module>([^<]+)</module>")
_PROJECT_GROUP_REFS = ("${project.groupId}", "${pom.groupId}", "${groupId}")
_PARENT_GROUP_REFS = ("${project.parent.groupId}", "${parent.groupId}")


class DescriptorError(Exception):
    """Raised when a descriptor cannot be read or lacks required fields."""


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child(element: ET.Element | None, name: str) -> ET.Element | None:
    if element is None:
        return None
    for child in element:
        if _local(child.tag) == name:
            return child
    return None


def _text(element: ET.Element | None, name: str) -> str | None:
    child = _child(element, name)
    if child is None or child.text is None:
        return None
    value = child.text.strip()
    return value or None


def _children(element: ET.Element | None, name: str) -> list[ET.Element]:
    if element is None:
        return []
    return [child for child in element if _local(child.tag) == name]


def _read_root_element(path: Path) -> ET.Element:
    try:
        tree = ET.parse(path)
    except ET.ParseError as exc:
        msg = f"{path}: malformed XML ({exc})"
        raise DescriptorError(msg) from exc
    except OSError as exc:
        msg = f"{path}: {exc.strerror or exc}"
        raise DescriptorError(msg) from exc

    root = tree.getroot()
    if _local(root.tag) != "project":
        msg = f"{path}: root element is <{_local(root.tag)}>, expected <project>"
        raise DescriptorError(msg)
    return root


def _resolve_group_ref(
    value: str | None, *, group_id: str, parent_group_id: str | None
) -> str | None:
    if value in _PROJECT_GROUP_REFS:
        return group_id
    if value in _PARENT_GROUP_REFS:
        return parent_group_id or group_id
    return value


def _parse_dependencies(
    project: ET.Element, *, group_id: str, parent_group_id: str | None
) -> tuple[DependencyRef, ...]:
    deps: list[DependencyRef] = []
    for dep in _children(_child(project, "dependencies"), "dependency"):
        artifact_id = _text(dep, "artifactId")
        if artifact_id is None:
            continue
        deps.append(
            DependencyRef(
                group_id=_resolve_group_ref(
                    _text(dep, "groupId"),
                    group_id=group_id,
                    parent_group_id=parent_group_id,
                ),
                artifact_id=artifact_id,
                scope=_text(dep, "scope"),
            )
        )
    return tuple(deps)


def parse_pom(path: Path) -> PomDescriptor:
    """Parse a pom.xml into a validated descriptor.

    groupId and version are inherited from <parent> when the project does not
    declare them.

    Raises:
        DescriptorError: If the file is unreadable, not a Maven project or
            has no artifactId.
    """
    project = _read_root_element(path)
    parent = _child(project, "parent")

    artifact_id = _text(project, "artifactId")
    if artifact_id is None:
        msg = f"{path}: missing required <artifactId>"
        raise DescriptorError(msg)

    parent_group_id = _text(parent, "groupId")
    parent_version = _text(parent, "version")
    group_id = _text(project, "groupId") or parent_group_id or DEFAULT_GROUP_ID
    declared_version = _text(project, "version")

    try:
        return PomDescriptor(
            group_id=group_id,
            artifact_id=artifact_id,
            version=declared_version or parent_version or DEFAULT_VERSION,
            declared_version=declared_version,
            name=_text(project, "name") or artifact_id,
            description=_text(project, "description") or "",
            packaging=_text(project, "packaging") or DEFAULT_PACKAGING,
            parent_group_id=parent_group_id,
            parent_version=parent_version,
            modules=tuple(
                module.text.strip()
                for module in _children(_child(project, "modules"), "module")
                if module.text and module.text.strip()
            ),
            dependencies=_parse_dependencies(
                project, group_id=group_id, parent_group_id=parent_group_id
            ),
        )
    except ValidationError as exc:
        msg = f"{path}: {exc}"
        raise DescriptorError(msg) from exc


def read_module_paths(root_pom: Path) -> list[str]:
    """Return the module paths declared by the root descriptor.

    Falls back to a tag scan when the root descriptor is not well formed, so
    a single stray character does not hide every module.
    """
    try:
        project = _read_root_element(root_pom)
    except DescriptorError:
        text = root_pom.read_text(encoding="utf-8", errors="replace")
        return [match.strip() for match in _MODULE_TAG.findall(text) if match.strip()]

    return [
        module.text.strip()
        for module in _children(_child(project, "modules"), "module")
        if module.text and module.text.strip()
    ]


__all__ = [
    "POM_FILENAME",
    "DescriptorError",
    "parse_pom",
    "read_module_paths",
]
