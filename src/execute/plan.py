"""Build planning: registry, dependency graph and levels for one request."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from graph.algos import build_dependency_graph
from graph.levels import compute_levels
from registry.discovery import discover_modules, select_modules

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from graph.algos import DependencyGraph
    from graph.levels import BuildLevel
    from registry.models import Module


@dataclass(frozen=True)
class BuildPlan:
    modules: list[Module]
    graph: DependencyGraph
    requested: list[str]
    levels: list[BuildLevel]

    @property
    def standalone(self) -> bool:
        """True when exactly one module is built on its own."""
        return len(self.requested) == 1

    def aliases(self) -> dict[str, list[str]]:
        """Alternative names the build tool may print for each requested module."""
        by_name = {module.name: module for module in self.modules}
        names: dict[str, list[str]] = {}
        for name in self.requested:
            module = by_name[name]
            extra = [module.artifact_id] if module.artifact_id else []
            names[name] = [alias for alias in extra if alias != name]
        return names


def plan_build(
    root: Path,
    requested: Sequence[str] | None = None,
    *,
    internal_group_ids: Sequence[str] | None = None,
    strict_cycles: bool = False,
) -> BuildPlan:
    """Discover modules and compute the levels for the requested set.

    Args:
        root: Repository root containing the root pom.xml
        requested: Module names to build; None means every module

    Raises:
        RegistryError: If descriptors are missing.
        UnknownModuleError: If a requested module is not declared.
        GraphError: If ``strict_cycles`` is set and the request has a cycle.
    """
    modules = discover_modules(root)
    if requested is None:
        names = [module.name for module in modules]
    else:
        names = [module.name for module in select_modules(modules, requested)]

    graph = build_dependency_graph(modules, internal_group_ids)
    levels = compute_levels(names, graph, strict=strict_cycles)
    return BuildPlan(modules=modules, graph=graph, requested=names, levels=levels)


__all__ = ["BuildPlan", "plan_build"]
