"""Module identity models.

A `PomDescriptor` is what a module descriptor says about itself; a `Module`
is the registry's immutable view of one buildable unit for a single run.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_GROUP_ID = "com.example"
DEFAULT_VERSION = "0.0.1-SNAPSHOT"
DEFAULT_PACKAGING = "jar"


class DependencyRef(BaseModel):
    """A dependency as declared in a descriptor."""

    model_config = ConfigDict(frozen=True)

    group_id: str | None = None
    artifact_id: str
    scope: str | None = None


class PomDescriptor(BaseModel):
    """Parsed content of a pom.xml."""

    model_config = ConfigDict(frozen=True)

    group_id: str
    artifact_id: str
    version: str
    name: str
    description: str = ""
    packaging: str = DEFAULT_PACKAGING
    parent_group_id: str | None = None
    parent_version: str | None = None
    declared_version: str | None = Field(
        default=None,
        description="Version element of the project itself (None when inherited)",
    )
    modules: tuple[str, ...] = ()
    dependencies: tuple[DependencyRef, ...] = ()

    @property
    def namespace(self) -> str:
        """Publishing namespace used to recognise internal dependencies."""
        return self.parent_group_id or self.group_id


class Module(BaseModel):
    """A buildable module discovered in the repository."""

    model_config = ConfigDict(frozen=True)

    name: str
    path: str
    group_id: str | None = None
    artifact_id: str | None = None
    version: str | None = None
    namespace: str | None = None
    declared_dependencies: tuple[DependencyRef, ...] = ()
    descriptor_ok: bool = True


__all__ = [
    "DEFAULT_GROUP_ID",
    "DEFAULT_PACKAGING",
    "DEFAULT_VERSION",
    "DependencyRef",
    "Module",
    "PomDescriptor",
]
