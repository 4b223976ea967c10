"""Change detection: which modules a diff touches."""

from changes.detect import (
    ChangeSet,
    GitError,
    changed_files,
    detect_changes,
    is_base_file,
    map_files_to_modules,
    run_git,
    write_change_artifacts,
)

__all__ = [
    "ChangeSet",
    "GitError",
    "changed_files",
    "detect_changes",
    "is_base_file",
    "map_files_to_modules",
    "run_git",
    "write_change_artifacts",
]
