"""Module discovery from the root descriptor."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from registry.descriptors import (
    POM_FILENAME,
    DescriptorError,
    parse_pom,
    read_module_paths,
)
from registry.models import Module, PomDescriptor
from rules.config import ConfigError
from utils import to_posix

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path

logger = logging.getLogger(__name__)


class RegistryError(ConfigError):
    """Raised when the root descriptor or a declared module descriptor is missing."""


class UnknownModuleError(ConfigError):
    """Raised when a requested module is not declared by the root descriptor."""


@dataclass(frozen=True)
class DescriptorEntry:
    """One declared module path and the outcome of parsing its descriptor."""

    path: str
    descriptor: PomDescriptor | None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.descriptor is not None


def scan_descriptors(root: Path) -> list[DescriptorEntry]:
    """Parse every module descriptor declared by the root descriptor.

    Returns a flat list in declaration order. Parse failures are carried as
    entries with an error message instead of raising.

    Raises:
        RegistryError: If the root descriptor is missing, or a declared module
            path has no descriptor.
    """
    root_pom = root / POM_FILENAME
    if not root_pom.is_file():
        msg = f"Root {POM_FILENAME} not found in {root}"
        raise RegistryError(msg)

    entries: list[DescriptorEntry] = []
    seen: set[str] = set()
    for declared in read_module_paths(root_pom):
        path = to_posix(declared)
        if path in seen:
            continue
        seen.add(path)

        module_pom = root / path / POM_FILENAME
        if not module_pom.is_file():
            msg = f"Module '{path}' is declared in {root_pom} but has no {POM_FILENAME}"
            raise RegistryError(msg)

        try:
            entries.append(DescriptorEntry(path=path, descriptor=parse_pom(module_pom)))
        except DescriptorError as exc:
            entries.append(DescriptorEntry(path=path, descriptor=None, error=str(exc)))

    return entries


def _to_module(entry: DescriptorEntry) -> Module:
    descriptor = entry.descriptor
    if descriptor is None:
        return Module(name=entry.path, path=entry.path, descriptor_ok=False)
    return Module(
        name=entry.path,
        path=entry.path,
        group_id=descriptor.group_id,
        artifact_id=descriptor.artifact_id,
        version=descriptor.version,
        namespace=descriptor.namespace,
        declared_dependencies=descriptor.dependencies,
    )


def discover_modules(root: Path) -> list[Module]:
    """Discover the buildable modules of a repository, in declaration order.

    A module whose descriptor cannot be parsed is logged and kept with no
    dependency data, so it can still be requested and built.
    """
    modules: list[Module] = []
    for entry in scan_descriptors(root):
        if not entry.ok:
            logger.warning(
                "Skipping dependency data for module '%s': %s", entry.path, entry.error
            )
        modules.append(_to_module(entry))
    return modules


def select_modules(modules: Sequence[Module], names: Iterable[str]) -> list[Module]:
    """Resolve requested module names against the registry, keeping request order.

    Raises:
        UnknownModuleError: If any requested name is not a known module.
    """
    by_name = {module.name: module for module in modules}
    selected: list[Module] = []
    unknown: list[str] = []
    for raw in names:
        name = to_posix(raw)
        if name not in by_name:
            unknown.append(raw)
            continue
        if by_name[name] not in selected:
            selected.append(by_name[name])

    if unknown:
        known = ", ".join(sorted(by_name)) or "(none)"
        msg = f"Unknown module(s): {', '.join(unknown)}. Known modules: {known}"
        raise UnknownModuleError(msg)
    return selected


__all__ = [
    "DescriptorEntry",
    "RegistryError",
    "UnknownModuleError",
    "discover_modules",
    "scan_descriptors",
    "select_modules",
]
