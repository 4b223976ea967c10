"""DEPENDENTS.yaml: repositories to update when a module is published."""

from __future__ import annotations

from typing import TYPE_CHECKING

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from rules.config import ConfigError

if TYPE_CHECKING:
    from pathlib import Path

DEPENDENTS_FILENAME = "DEPENDENTS.yaml"
VERSION_PLACEHOLDER = "{{version}}"


class DependentsError(ConfigError):
    """Raised when a DEPENDENTS.yaml file is malformed."""


class FileReplacement(BaseModel):
    """A regex rewrite applied to one file of a dependent repository."""

    model_config = ConfigDict(frozen=True)

    path: str
    search: str
    replace: str

    def render(self, version: str) -> str:
        return self.replace.replace(VERSION_PLACEHOLDER, version)


class Dependent(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    repo: str = Field(description="owner/name on GitHub")
    base_branch: str = Field(default="main", alias="baseBranch")
    files: tuple[FileReplacement, ...] = ()

    @field_validator("repo")
    @classmethod
    def validate_repo(cls, v: str) -> str:
        parts = v.split("/")
        if len(parts) != 2 or not all(parts):
            msg = f"repo must look like 'owner/name', got '{v}'"
            raise ValueError(msg)
        return v

    @property
    def owner(self) -> str:
        return self.repo.split("/")[0]

    @property
    def name(self) -> str:
        return self.repo.split("/")[1]


class DependentsFile(BaseModel):
    dependents: list[Dependent] = Field(default_factory=list)


def load_dependents(root: Path, module: str) -> list[Dependent]:
    """Dependents declared by ``module``; an absent file means none.

    Raises:
        DependentsError: If the file is not valid YAML or has the wrong shape.
    """
    path = root / module / DEPENDENTS_FILENAME
    if not path.is_file():
        return []

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        msg = f"Invalid YAML in {path}: {exc}"
        raise DependentsError(msg) from exc

    if data is None:
        return []
    try:
        return DependentsFile.model_validate(data).dependents
    except ValidationError as exc:
        msg = f"Invalid dependents in {path}: {exc}"
        raise DependentsError(msg) from exc


__all__ = [
    "DEPENDENTS_FILENAME",
    "VERSION_PLACEHOLDER",
    "Dependent",
    "DependentsError",
    "DependentsFile",
    "FileReplacement",
    "load_dependents",
]
