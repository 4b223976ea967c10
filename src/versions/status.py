"""Version comparison between package.json and pom.xml."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from registry.descriptors import POM_FILENAME, read_module_paths
from registry.discovery import RegistryError, UnknownModuleError
from utils import normalize_version, to_posix
from versions.manifest import read_package_version, read_pom_version

if TYPE_CHECKING:
    from pathlib import Path


class VersionStatus(BaseModel):
    """package.json and pom.xml versions of one module."""

    model_config = ConfigDict(frozen=True)

    name: str
    package_version: str | None = None
    pom_version: str | None = None
    match: bool = False


def module_paths(root: Path, module: str | None = None) -> list[str]:
    """Declared module paths, optionally narrowed to a single module.

    Raises:
        RegistryError: If the root descriptor is missing.
        UnknownModuleError: If ``module`` is not declared.
    """
    root_pom = root / POM_FILENAME
    if not root_pom.is_file():
        msg = f"Root {POM_FILENAME} not found in {root}"
        raise RegistryError(msg)

    paths: list[str] = []
    for declared in read_module_paths(root_pom):
        path = to_posix(declared)
        if path not in paths:
            paths.append(path)

    if module is None:
        return paths
    wanted = to_posix(module)
    if wanted not in paths:
        msg = f"Module '{module}' not found"
        raise UnknownModuleError(msg)
    return [wanted]


def version_status(root: Path, name: str) -> VersionStatus:
    module_dir = root / name
    package_version = read_package_version(module_dir)
    pom_version = read_pom_version(module_dir)
    normalized = normalize_version(package_version)
    return VersionStatus(
        name=name,
        package_version=package_version,
        pom_version=pom_version,
        match=normalized is not None and normalized == normalize_version(pom_version),
    )


def collect_version_status(root: Path, module: str | None = None) -> list[VersionStatus]:
    return [version_status(root, name) for name in module_paths(root, module)]


def render_status_table(statuses: list[VersionStatus]) -> str:
    """Fixed-width comparison table with a totals line."""
    name_pad = max([len(s.name) for s in statuses] + [len("Module")]) + 2
    pkg_pad = max([len(s.package_version or "N/A") for s in statuses] + [len("package.json")]) + 2
    pom_pad = max([len(s.pom_version or "N/A") for s in statuses] + [len("pom.xml")]) + 2
    width = name_pad + pkg_pad + pom_pad + 10

    lines = [
        "",
        "Version Status",
        "==============",
        "",
        "Module".ljust(name_pad) + "package.json".ljust(pkg_pad) + "pom.xml".ljust(pom_pad) + "Status",
        "-" * width,
    ]
    for status in statuses:
        lines.append(
            status.name.ljust(name_pad)
            + (status.package_version or "N/A").ljust(pkg_pad)
            + (status.pom_version or "N/A").ljust(pom_pad)
            + ("✓" if status.match else "MISMATCH")
        )

    matching = sum(1 for s in statuses if s.match)
    lines.extend(
        [
            "",
            "=" * width,
            f"Total: {len(statuses)} | Matching: {matching} | "
            f"Mismatches: {len(statuses) - matching}",
        ]
    )
    return "\n".join(lines)


__all__ = [
    "VersionStatus",
    "collect_version_status",
    "module_paths",
    "render_status_table",
    "version_status",
]
