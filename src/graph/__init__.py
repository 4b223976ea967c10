"""Dependency graph construction and level scheduling."""

from graph.algos import DependencyGraph, build_dependency_graph, find_cycles
from graph.levels import BuildLevel, GraphError, compute_levels, topological_order

__all__ = [
    "BuildLevel",
    "DependencyGraph",
    "GraphError",
    "build_dependency_graph",
    "compute_levels",
    "find_cycles",
    "topological_order",
]
