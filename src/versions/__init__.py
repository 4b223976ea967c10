"""Version bookkeeping between package.json and pom.xml."""

from versions.manifest import (
    read_package_version,
    read_pom_version,
    replace_pom_version,
    update_package_version,
    update_pom_version,
)
from versions.scaffold import InitOutcome, InitReport, generate_package_json, init_packages
from versions.status import (
    VersionStatus,
    collect_version_status,
    module_paths,
    render_status_table,
)
from versions.sync import SyncAction, SyncReport, sync_versions

__all__ = [
    "InitOutcome",
    "InitReport",
    "SyncAction",
    "SyncReport",
    "VersionStatus",
    "collect_version_status",
    "generate_package_json",
    "init_packages",
    "module_paths",
    "read_package_version",
    "read_pom_version",
    "render_status_table",
    "replace_pom_version",
    "sync_versions",
    "update_package_version",
    "update_pom_version",
]
