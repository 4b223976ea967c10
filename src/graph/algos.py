"""Graph algorithms for internal module dependencies."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from registry.models import Module

DependencyGraph = dict[str, set[str]]


def _internal_targets(modules: Sequence[Module]) -> dict[tuple[str, str], str]:
    """Map (namespace, artifactId) of every parseable module to its name."""
    targets: dict[tuple[str, str], str] = {}
    for module in modules:
        if not module.descriptor_ok or module.artifact_id is None:
            continue
        for group in {module.group_id, module.namespace}:
            if group is not None:
                targets.setdefault((group, module.artifact_id), module.name)
    return targets


def build_dependency_graph(
    modules: Sequence[Module],
    internal_group_ids: Iterable[str] | None = None,
) -> DependencyGraph:
    """Build the internal dependency graph of a module set.

    Args:
        modules: Modules discovered by the registry
        internal_group_ids: Namespaces treated as internal. When empty, each
            module's own namespace is the internal one for its dependencies.

    Returns:
        Dictionary mapping every module name to the set of module names it
        depends on. Isolated modules map to an empty set; external and
        unresolvable dependencies are dropped.
    """
    configured = frozenset(internal_group_ids or ())
    targets = _internal_targets(modules)

    graph: DependencyGraph = {module.name: set() for module in modules}

    for module in modules:
        internal = configured or frozenset({module.namespace} - {None})
        for dep in module.declared_dependencies:
            if dep.group_id not in internal:
                continue
            target = targets.get((dep.group_id, dep.artifact_id))
            if target is None or target == module.name:
                continue
            graph[module.name].add(target)

    return graph


class _TarjanState:
    """Mutable state container for Tarjan's SCC algorithm."""

    def __init__(self) -> None:
        self.index = 0
        self.indices: dict[str, int] = {}
        self.low_link: dict[str, int] = {}
        self.on_stack: set[str] = set()
        self.stack: list[str] = []
        self.sccs: list[list[str]] = []


def _extract_scc(state: _TarjanState, root: str) -> list[str]:
    """Extract a strongly connected component from the stack."""
    scc: list[str] = []
    while state.stack:
        w = state.stack.pop()
        state.on_stack.remove(w)
        scc.append(w)
        if w == root:
            break
    if root not in scc:
        msg = (
            f"Tarjan algorithm invariant violated: root node {root!r} "
            "not found in stack during SCC extraction."
        )
        raise RuntimeError(msg)
    return scc


def _strongconnect(node: str, graph: DependencyGraph, state: _TarjanState) -> None:
    """Process a node in Tarjan's algorithm."""
    state.indices[node] = state.index
    state.low_link[node] = state.index
    state.index += 1
    state.stack.append(node)
    state.on_stack.add(node)

    for neighbor in sorted(graph.get(node, set())):
        if neighbor not in state.indices:
            _strongconnect(neighbor, graph, state)
            state.low_link[node] = min(state.low_link[node], state.low_link[neighbor])
        elif neighbor in state.on_stack:
            state.low_link[node] = min(state.low_link[node], state.indices[neighbor])

    if state.low_link[node] == state.indices[node]:
        scc = _extract_scc(state, node)
        if len(scc) > 1 or node in graph.get(node, set()):
            state.sccs.append(sorted(scc))


def find_cycles(graph: DependencyGraph) -> list[list[str]]:
    """Find cycles in a directed graph using Tarjan's algorithm.

    Args:
        graph: Dictionary representing the graph

    Returns:
        List of cycles, where each cycle is a sorted list of nodes
    """
    state = _TarjanState()

    for node in sorted(graph):
        if node not in state.indices:
            _strongconnect(node, graph, state)

    return state.sccs


__all__ = [
    "DependencyGraph",
    "build_dependency_graph",
    "find_cycles",
]
