"""Generate package.json files from pom.xml metadata."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

from registry.descriptors import POM_FILENAME, DescriptorError, parse_pom
from utils import normalize_version
from versions.manifest import PACKAGE_JSON, write_package_json
from versions.status import module_paths

if TYPE_CHECKING:
    from pathlib import Path

    from registry.models import PomDescriptor

PACKAGE_SCOPE = "@libs"

InitAction = Literal["created", "exists", "unreadable"]


@dataclass(frozen=True)
class InitOutcome:
    name: str
    action: InitAction
    pom_version: str | None = None
    package_version: str | None = None


@dataclass
class InitReport:
    outcomes: list[InitOutcome] = field(default_factory=list)
    dry_run: bool = False

    def count(self, action: InitAction) -> int:
        return sum(1 for outcome in self.outcomes if outcome.action == action)


def generate_package_json(module_name: str, descriptor: PomDescriptor) -> dict[str, Any]:
    """Build the package.json content for a module.

    The scripts delegate back to the build tool from the repository root.
    """
    return {
        "name": f"{PACKAGE_SCOPE}/{descriptor.artifact_id}",
        "version": normalize_version(descriptor.version),
        "private": True,
        "description": descriptor.description or descriptor.name,
        "maven": {
            "groupId": descriptor.group_id,
            "artifactId": descriptor.artifact_id,
            "packaging": descriptor.packaging,
        },
        "scripts": {
            "build": f"cd .. && mvn -pl {module_name} -am clean package -DskipTests",
            "test": f"cd .. && mvn -pl {module_name} test",
            "deploy": f"cd .. && mvn -pl {module_name} -am clean deploy -DskipTests",
        },
    }


def init_packages(
    root: Path,
    *,
    module: str | None = None,
    force: bool = False,
    dry_run: bool = False,
) -> InitReport:
    """Create package.json for modules that lack one (or all, with ``force``)."""
    report = InitReport(dry_run=dry_run)
    for name in module_paths(root, module):
        module_dir = root / name
        if (module_dir / PACKAGE_JSON).exists() and not force:
            report.outcomes.append(InitOutcome(name=name, action="exists"))
            continue

        try:
            descriptor = parse_pom(module_dir / POM_FILENAME)
        except DescriptorError:
            report.outcomes.append(InitOutcome(name=name, action="unreadable"))
            continue

        data = generate_package_json(name, descriptor)
        if not dry_run:
            write_package_json(module_dir, data)
        report.outcomes.append(
            InitOutcome(
                name=name,
                action="created",
                pom_version=descriptor.version,
                package_version=data["version"],
            )
        )
    return report


__all__ = [
    "InitOutcome",
    "InitReport",
    "generate_package_json",
    "init_packages",
]
