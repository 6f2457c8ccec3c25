"""Closure algorithms over the dependency DiGraph.

Pure functions taking a graph built by :class:`GraphEngine`. Every
traversal keeps a visited set, so cyclic graphs terminate.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable, Sequence

import networkx as nx


class DependencyCycleError(ValueError):
    """Raised when templates cannot be ordered because they form a cycle."""

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        super().__init__("Dependency cycle: " + " -> ".join([*cycle, cycle[0]]))


def _walk(start: str, step: Callable[[str], Iterable[str]]) -> list[str]:
    """Breadth-first reachable set from *start* (excluding *start*)."""
    visited: set[str] = {start}
    order: list[str] = []
    queue: deque[str] = deque([start])
    while queue:
        node = queue.popleft()
        for neighbor in step(node):
            if neighbor not in visited:
                visited.add(neighbor)
                order.append(neighbor)
                queue.append(neighbor)
    return order


def downstream(g: nx.DiGraph, template: str) -> list[str]:
    """Every template depending on *template*, directly or indirectly."""
    if template not in g:
        return []
    return _walk(template, g.successors)


def upstream(g: nx.DiGraph, template: str) -> list[str]:
    """Every template *template* depends on, directly or indirectly."""
    if template not in g:
        return []
    return _walk(template, g.predecessors)


def closed_subset(g: nx.DiGraph, candidates: Sequence[str]) -> list[str]:
    """Return the candidates whose whole downstream lies inside *candidates*.

    Input order and duplicates are preserved. Templates unknown to the
    graph have no dependents and are always kept.
    """
    members = set(candidates)
    closed: dict[str, bool] = {}
    result: list[str] = []
    for template in candidates:
        if template not in closed:
            closed[template] = all(d in members for d in downstream(g, template))
        if closed[template]:
            result.append(template)
    return result


def blocking_dependents(g: nx.DiGraph, template: str, candidates: Iterable[str]) -> list[str]:
    """Downstream templates of *template* that fall outside *candidates*."""
    members = set(candidates)
    return [d for d in downstream(g, template) if d not in members]


def with_dependencies(g: nx.DiGraph, templates: Sequence[str]) -> list[str]:
    """*templates* followed by every transitive dependency not already listed."""
    result = list(dict.fromkeys(templates))
    seen = set(result)
    for template in list(result):
        for dependency in upstream(g, template):
            if dependency not in seen:
                seen.add(dependency)
                result.append(dependency)
    return result


def dependency_order(g: nx.DiGraph, templates: Sequence[str]) -> list[str]:
    """Order *templates* so every provider comes before its consumers.

    Ordering implied through templates outside the selection still
    applies. Ties keep input order.

    Raises:
        DependencyCycleError: If the selection cannot be ordered.
    """
    selected = list(dict.fromkeys(templates))
    position = {template: i for i, template in enumerate(selected)}

    h: nx.DiGraph = nx.DiGraph()
    h.add_nodes_from(selected)
    for template in selected:
        for dependent in downstream(g, template):
            if dependent in position:
                h.add_edge(template, dependent)
        if g.has_edge(template, template):
            h.add_edge(template, template)

    try:
        return list(nx.lexicographical_topological_sort(h, key=position.__getitem__))
    except nx.NetworkXUnfeasible:
        cycle = [u for u, _v in nx.find_cycle(h)]
        raise DependencyCycleError(cycle) from None


def find_cycles(g: nx.DiGraph) -> list[list[str]]:
    """Every elementary cycle in the graph (self-links included)."""
    return [list(cycle) for cycle in nx.simple_cycles(g)]
