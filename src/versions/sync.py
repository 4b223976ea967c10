"""Bring pom.xml and package.json versions back in line."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from utils import normalize_version, snapshot_version
from versions.manifest import update_package_version, update_pom_version
from versions.status import collect_version_status

if TYPE_CHECKING:
    from pathlib import Path


@dataclass(frozen=True)
class SyncAction:
    name: str
    current: str
    target: str
    ok: bool


@dataclass
class SyncReport:
    actions: list[SyncAction] = field(default_factory=list)
    dry_run: bool = False
    reverse: bool = False

    @property
    def synced(self) -> int:
        return sum(1 for action in self.actions if action.ok)

    @property
    def failed(self) -> int:
        return len(self.actions) - self.synced

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0


def sync_versions(
    root: Path,
    *,
    module: str | None = None,
    reverse: bool = False,
    dry_run: bool = False,
) -> SyncReport:
    """Rewrite out-of-sync versions.

    By default package.json is the source and the pom project version is set
    to its -SNAPSHOT form. With ``reverse`` the pom version (without
    -SNAPSHOT) is written to package.json. Modules lacking either version are
    left alone.
    """
    report = SyncReport(dry_run=dry_run, reverse=reverse)
    for status in collect_version_status(root, module):
        package_version = status.package_version
        pom_version = status.pom_version
        if package_version is None or pom_version is None:
            continue
        if package_version == normalize_version(pom_version):
            continue

        module_dir = root / status.name
        if reverse:
            current, target = package_version, normalize_version(pom_version) or pom_version
            ok = dry_run or update_package_version(module_dir, target)
        else:
            current, target = pom_version, snapshot_version(package_version)
            ok = dry_run or update_pom_version(module_dir, package_version)
        report.actions.append(
            SyncAction(name=status.name, current=current, target=target, ok=ok)
        )
    return report


__all__ = ["SyncAction", "SyncReport", "sync_versions"]
