"""DependencyTree — the template relationship model for one project load.

Callers register ``provide``/``require``/``link`` records, then query.
Mutation and queries may interleave: every mutation invalidates the
cached graph and the next query rebuilds it from the full record set.

Not thread-safe. Build the tree from a single writer before querying.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Sequence

import networkx as nx

from cftctl.infrastructure.graph import closure
from cftctl.infrastructure.graph.engine import GraphEngine
from cftctl.infrastructure.graph.registry import VariableRegistry

logger = logging.getLogger(__name__)


class DependencyTree:
    """Which templates depend on which, and which subsets are self-contained."""

    def __init__(self) -> None:
        self._seq = itertools.count()
        self._registry = VariableRegistry()
        self._engine = GraphEngine(self._registry)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def provide(self, template: str, variable: str) -> None:
        """Record that *template* supplies *variable*."""
        if self._registry.provide(template, variable, seq=next(self._seq)):
            self._engine.invalidate()
            logger.debug("provide %s -> %s", template, variable)

    def require(self, template: str, variable: str) -> None:
        """Record that *template* consumes *variable*.

        Every provider of *variable*, registered before or after this
        call, becomes a dependency of *template*.
        """
        if self._registry.require(template, variable, seq=next(self._seq)):
            self._engine.invalidate()
            logger.debug("require %s <- %s", template, variable)

    def link(self, provider: str, consumer: str) -> None:
        """Record that *consumer* depends on *provider* unconditionally."""
        if self._engine.link(provider, consumer, seq=next(self._seq)):
            logger.debug("link %s -> %s", provider, consumer)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def graph(self) -> nx.DiGraph:
        """The underlying DiGraph (``provider -> consumer`` edges)."""
        return self._engine.graph

    @property
    def templates(self) -> list[str]:
        """Every template named by any record, in first-registration order."""
        return list(self.graph.nodes)

    def dependencies_for(self, template: str) -> list[str]:
        return self._engine.dependencies_for(template)

    def dependents_for(self, template: str) -> list[str]:
        return self._engine.dependents_for(template)

    def undefined_variables(self) -> set[str]:
        """Variables required somewhere but provided nowhere."""
        return self._registry.undefined_variables()

    def providers_of(self, variable: str) -> list[str]:
        return self._registry.providers_of(variable)

    def requirers_of(self, variable: str) -> list[str]:
        return self._registry.requirers_of(variable)

    def duplicate_providers(self) -> dict[str, list[str]]:
        """Variables with more than one provider, mapped to those providers."""
        return self._registry.duplicate_providers()

    def edge_variables(self, provider: str, consumer: str) -> list[str]:
        """Variables inducing the ``provider -> consumer`` edge, if any."""
        g = self.graph
        if not g.has_edge(provider, consumer):
            return []
        return list(g.edges[provider, consumer]["variables"])

    def closed_subset(self, candidates: Sequence[str]) -> list[str]:
        """The part of *candidates* that can be acted on without orphaning a dependent.

        A candidate is kept only if every template depending on it,
        transitively and across the whole graph, is also a candidate.
        """
        return closure.closed_subset(self.graph, candidates)

    def blocking_dependents(self, template: str, candidates: Sequence[str]) -> list[str]:
        """Dependents of *template* outside *candidates* that keep it from being closed."""
        return closure.blocking_dependents(self.graph, template, candidates)

    def with_dependencies(self, templates: Sequence[str]) -> list[str]:
        return closure.with_dependencies(self.graph, templates)

    def sort(self, templates: Sequence[str] | None = None) -> list[str]:
        """Order *templates* (default: all) so providers precede consumers.

        Raises:
            DependencyCycleError: If the templates form a cycle.
        """
        selected = self.templates if templates is None else templates
        return closure.dependency_order(self.graph, selected)

    def cycles(self) -> list[list[str]]:
        return closure.find_cycles(self.graph)
