"""Level decomposition of the internal dependency graph.

Modules in one level have every in-request dependency satisfied by earlier
levels, so a level can be built concurrently once its predecessors finish.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from graph.algos import find_cycles

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from graph.algos import DependencyGraph

logger = logging.getLogger(__name__)


class GraphError(Exception):
    """Raised when the dependency graph cannot be scheduled under strict rules."""


@dataclass(frozen=True)
class BuildLevel:
    index: int
    modules: tuple[str, ...]
    cyclic: bool = False

    def __len__(self) -> int:
        return len(self.modules)

    def __iter__(self) -> Iterator[str]:
        return iter(self.modules)


def _dedupe(names: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for name in names:
        if name not in seen:
            seen.add(name)
            ordered.append(name)
    return ordered


def compute_levels(
    requested: Iterable[str],
    graph: DependencyGraph,
    *,
    strict: bool = False,
) -> list[BuildLevel]:
    """Split the requested modules into dependency levels.

    Dependencies outside the requested set are treated as already built.
    When the remaining modules form a cycle they are placed together in one
    final level marked ``cyclic`` and a warning is logged.

    Raises:
        GraphError: If ``strict`` is set and a cycle is detected.
    """
    modules = _dedupe(requested)
    in_request = set(modules)
    deps_of = {name: graph.get(name, set()) & in_request for name in modules}

    levels: list[BuildLevel] = []
    leveled: set[str] = set()
    remaining = modules

    while remaining:
        ready = tuple(name for name in remaining if deps_of[name] <= leveled)

        if not ready:
            stuck = {name: deps_of[name] & set(remaining) for name in remaining}
            cycles = find_cycles(stuck)
            described = "; ".join(" <-> ".join(cycle) for cycle in cycles)
            if strict:
                msg = f"Circular dependency detected: {described}"
                raise GraphError(msg)
            logger.warning(
                "Possible circular dependency detected (%s); building %s together "
                "in a final level",
                described or "unresolved",
                ", ".join(remaining),
            )
            levels.append(BuildLevel(len(levels), tuple(remaining), cyclic=True))
            break

        levels.append(BuildLevel(len(levels), ready))
        leveled.update(ready)
        remaining = [name for name in remaining if name not in leveled]

    return levels


def topological_order(requested: Iterable[str], graph: DependencyGraph) -> list[str]:
    """Return the requested modules with dependencies before dependents.

    Cycles are broken at the first revisit, so the order is total even for
    cyclic input.
    """
    modules = _dedupe(requested)
    in_request = set(modules)
    visited: set[str] = set()
    order: list[str] = []

    def visit(name: str) -> None:
        if name in visited:
            return
        visited.add(name)
        for dep in sorted(graph.get(name, set()) & in_request):
            visit(dep)
        order.append(name)

    for name in modules:
        visit(name)
    return order


__all__ = ["BuildLevel", "GraphError", "compute_levels", "topological_order"]
