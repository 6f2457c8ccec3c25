"""GraphEngine — lazy-built NetworkX graph from links and variable records.

Rebuilt on first query after any mutation, no cross-invocation cache.
Direct links and variable-mediated edges land in one DiGraph; edge
attributes remember why the edge exists.
"""

from __future__ import annotations

import networkx as nx

from cftctl.infrastructure.graph.registry import VariableRegistry

type _Graph = nx.DiGraph


class GraphEngine:
    """Edge store: direct links plus a registry, joined into a DiGraph lazily."""

    def __init__(self, registry: VariableRegistry) -> None:
        self._registry = registry
        self._links: dict[tuple[str, str], int] = {}
        self._graph: _Graph | None = None

    def link(self, provider: str, consumer: str, *, seq: int) -> bool:
        """Record a direct ``provider -> consumer`` edge.

        Returns False when the link already existed.
        """
        key = (provider, consumer)
        if key in self._links:
            return False
        self._links[key] = seq
        self.invalidate()
        return True

    @property
    def graph(self) -> _Graph:
        """Return the graph, building it on first access."""
        if self._graph is None:
            self._graph = self._build()
        return self._graph

    def invalidate(self) -> None:
        """Clear the cached graph, forcing rebuild on next access."""
        self._graph = None

    def _build(self) -> _Graph:
        """Build a DiGraph with edges inserted in discovery order.

        Loads every registered template first (so isolated templates
        appear in the graph), then adds edges sorted by the registration
        call that completed them.
        """
        g: _Graph = nx.DiGraph()

        nodes: list[tuple[int, str]] = [(r.seq, r.template) for r in self._registry.records()]
        for (provider, consumer), seq in self._links.items():
            nodes.append((seq, provider))
            nodes.append((seq, consumer))
        for _seq, template in sorted(nodes, key=lambda n: n[0]):
            g.add_node(template)

        found: list[tuple[int, str, str, str | None]] = [
            (seq, provider, consumer, None) for (provider, consumer), seq in self._links.items()
        ]
        found.extend(self._registry.variable_edges())
        found.sort(key=lambda edge: edge[0])

        for _seq, provider, consumer, variable in found:
            if not g.has_edge(provider, consumer):
                g.add_edge(provider, consumer, variables=[], linked=False)
            attrs = g.edges[provider, consumer]
            if variable is None:
                attrs["linked"] = True
            elif variable not in attrs["variables"]:
                attrs["variables"].append(variable)
        return g

    # ------------------------------------------------------------------
    # One-hop queries
    # ------------------------------------------------------------------

    def dependencies_for(self, template: str) -> list[str]:
        """Templates *template* depends on, in discovery order."""
        g = self.graph
        if template not in g:
            return []
        return list(g.predecessors(template))

    def dependents_for(self, template: str) -> list[str]:
        """Templates depending on *template*, in discovery order."""
        g = self.graph
        if template not in g:
            return []
        return list(g.successors(template))
