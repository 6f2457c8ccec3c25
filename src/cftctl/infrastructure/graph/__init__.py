"""Dependency graph between templates: registry, edge store, closures."""

from cftctl.infrastructure.graph.closure import DependencyCycleError
from cftctl.infrastructure.graph.tree import DependencyTree

__all__ = ["DependencyCycleError", "DependencyTree"]
