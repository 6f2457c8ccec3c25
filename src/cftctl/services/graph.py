"""GraphService — dependency queries over the project's templates.

Read-only. Uses ``self._project.tree`` (triggers the lazy project load).
"""

from __future__ import annotations

from typing import Any

from cftctl.services.base import BaseService
from cftctl.services.result import ServiceResult
from cftctl.services.telemetry import trace_span, traced


class GraphService(BaseService):
    """Handles one-hop dependency queries and closed-subset selection."""

    def _edge_item(self, provider: str, consumer: str, other: str) -> dict[str, Any]:
        g = self._project.tree.graph
        attrs = g.edges[provider, consumer]
        return {
            "id": other,
            "variables": list(attrs["variables"]),
            "linked": attrs["linked"],
        }

    # ------------------------------------------------------------------
    # dependencies / dependents
    # ------------------------------------------------------------------

    @traced
    def dependencies(self, template_id: str) -> ServiceResult:
        """Templates *template_id* depends on, with the variables involved."""
        op = "dependencies"
        known, failure = self._resolve(op, [template_id])
        if failure is not None:
            return failure
        target = known[0]
        items = [
            self._edge_item(dep, target, dep)
            for dep in self._project.tree.dependencies_for(target)
        ]
        return ServiceResult(
            ok=True,
            op=op,
            data={"id": target, "count": len(items), "items": items},
            warnings=self._load_warnings(),
        )

    @traced
    def dependents(self, template_id: str) -> ServiceResult:
        """Templates depending on *template_id*, with the variables involved."""
        op = "dependents"
        known, failure = self._resolve(op, [template_id])
        if failure is not None:
            return failure
        target = known[0]
        items = [
            self._edge_item(target, dep, dep) for dep in self._project.tree.dependents_for(target)
        ]
        return ServiceResult(
            ok=True,
            op=op,
            data={"id": target, "count": len(items), "items": items},
            warnings=self._load_warnings(),
        )

    # ------------------------------------------------------------------
    # closed subset
    # ------------------------------------------------------------------

    @traced
    def closed_subset(self, template_ids: list[str]) -> ServiceResult:
        """Split *template_ids* into the self-contained part and the rest.

        Each blocked template lists the outside dependents holding it back.
        """
        op = "closed_subset"
        known, failure = self._resolve(op, template_ids)
        if failure is not None:
            return failure

        tree = self._project.tree
        with trace_span("closure") as span:
            closed = tree.closed_subset(known)
            if span:
                span.annotate("candidates", len(known))
                span.annotate("closed", len(closed))

        kept = set(closed)
        blocked = [
            {"id": t, "blocked_by": tree.blocking_dependents(t, known)}
            for t in dict.fromkeys(known)
            if t not in kept
        ]
        return ServiceResult(
            ok=True,
            op=op,
            data={"count": len(closed), "closed": closed, "blocked": blocked},
            warnings=self._load_warnings(),
        )
