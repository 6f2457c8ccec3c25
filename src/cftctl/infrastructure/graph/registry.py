"""VariableRegistry — which templates provide and require each variable.

Two ordered indexes keyed by variable name. Edges are never stored here;
:meth:`VariableRegistry.variable_edges` joins the indexes on demand so the
order of ``provide`` and ``require`` calls cannot change the final graph.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass


@dataclass(frozen=True)
class VariableRecord:
    """A single provide or require registration."""

    template: str
    variable: str
    seq: int  # registration order across the whole tree


class VariableRegistry:
    """Ordered provide/require indexes with undefined-variable detection."""

    def __init__(self) -> None:
        self._providers: dict[str, dict[str, VariableRecord]] = {}
        self._requirers: dict[str, dict[str, VariableRecord]] = {}

    def provide(self, template: str, variable: str, *, seq: int) -> bool:
        """Record that *template* supplies *variable*.

        Returns False when the record already existed.
        """
        return self._add(self._providers, template, variable, seq)

    def require(self, template: str, variable: str, *, seq: int) -> bool:
        """Record that *template* consumes *variable*.

        Returns False when the record already existed.
        """
        return self._add(self._requirers, template, variable, seq)

    @staticmethod
    def _add(
        index: dict[str, dict[str, VariableRecord]],
        template: str,
        variable: str,
        seq: int,
    ) -> bool:
        records = index.setdefault(variable, {})
        if template in records:
            return False
        records[template] = VariableRecord(template=template, variable=variable, seq=seq)
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def providers_of(self, variable: str) -> list[str]:
        """Templates providing *variable*, in registration order."""
        return list(self._providers.get(variable, {}))

    def requirers_of(self, variable: str) -> list[str]:
        """Templates requiring *variable*, in registration order."""
        return list(self._requirers.get(variable, {}))

    def records(self) -> Iterator[VariableRecord]:
        """Yield every provide and require record."""
        for index in (self._providers, self._requirers):
            for records in index.values():
                yield from records.values()

    def undefined_variables(self) -> set[str]:
        """Variables with at least one requirer and no provider."""
        return {
            variable
            for variable, requirers in self._requirers.items()
            if requirers and not self._providers.get(variable)
        }

    def duplicate_providers(self) -> dict[str, list[str]]:
        """Map of variable -> providers for variables provided more than once."""
        return {
            variable: list(providers)
            for variable, providers in self._providers.items()
            if len(providers) > 1
        }

    def variable_edges(self) -> list[tuple[int, str, str, str]]:
        """Join providers and requirers into ``(seq, provider, consumer, variable)``.

        An edge is discovered by whichever of its two records came last, so
        ``seq`` is the later of the pair. The result is sorted by ``seq``.
        """
        found: list[tuple[int, str, str, str]] = []
        for variable, requirers in self._requirers.items():
            providers = self._providers.get(variable)
            if not providers:
                continue
            for provided in providers.values():
                for required in requirers.values():
                    seq = max(provided.seq, required.seq)
                    found.append((seq, provided.template, required.template, variable))
        found.sort(key=lambda edge: edge[0])
        return found
