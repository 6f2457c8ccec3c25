"""PlanService — deploy and retract ordering.

Plans are computed, never applied: the result lists the steps another
tool (or a human) would run, in a safe order.

- Deploy: providers before consumers. Refuses when a selected template
  imports a variable nothing exports.
- Retract: only the closed subset of the selection, consumers before
  providers. Templates still needed by something outside the selection
  are reported as blocked.
"""

from __future__ import annotations

from typing import Any

from cftctl.infrastructure.graph import DependencyCycleError, DependencyTree
from cftctl.services.base import BaseService
from cftctl.services.result import ServiceResult
from cftctl.services.telemetry import trace_span, traced


class PlanService(BaseService):
    """Handles deploy and retract planning."""

    @staticmethod
    def _steps(tree: DependencyTree, order: list[str], *, upstream: bool) -> list[dict[str, Any]]:
        """Number *order* and note which other plan members each step waits on."""
        members = set(order)
        steps: list[dict[str, Any]] = []
        for i, template in enumerate(order, start=1):
            related = tree.dependencies_for(template) if upstream else tree.dependents_for(template)
            steps.append(
                {
                    "step": i,
                    "id": template,
                    "after": [t for t in related if t in members and t != template],
                }
            )
        return steps

    @staticmethod
    def _cycle_failure(op: str, exc: DependencyCycleError) -> ServiceResult:
        return ServiceResult.failure(op, "CYCLE", str(exc), cycle=exc.cycle)

    # ------------------------------------------------------------------
    # deploy
    # ------------------------------------------------------------------

    @traced
    def deploy(
        self,
        template_ids: list[str] | None = None,
        *,
        with_dependencies: bool | None = None,
    ) -> ServiceResult:
        """Order *template_ids* (default: every template) for deployment.

        Args:
            template_ids: Templates to deploy; empty or None selects all.
            with_dependencies: Also deploy everything the selection depends
                on. Defaults to the ``[plan]`` config.
        """
        op = "deploy_plan"
        if with_dependencies is None:
            with_dependencies = self._project.settings.plan.with_dependencies

        if template_ids:
            selected, failure = self._resolve(op, template_ids)
            if failure is not None:
                return failure
        else:
            selected = list(self._project.templates)

        tree = self._project.tree
        warnings = self._load_warnings()
        if with_dependencies:
            templates = self._project.templates
            selected = [t for t in tree.with_dependencies(selected) if t in templates]

        failure = self._check_variables(op, tree, selected, warnings)
        if failure is not None:
            return failure

        with trace_span("sort") as span:
            try:
                order = tree.sort(selected)
            except DependencyCycleError as exc:
                return self._cycle_failure(op, exc)
            if span:
                span.annotate("templates", len(order))

        members = set(order)
        for template in order:
            for dependency in tree.dependencies_for(template):
                if dependency not in members:
                    warnings.append(f"{template} depends on {dependency}, which is not in this plan")

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "environment": self._project.settings.environment,
                "count": len(order),
                "steps": self._steps(tree, order, upstream=True),
            },
            warnings=warnings,
        )

    def _check_variables(
        self,
        op: str,
        tree: DependencyTree,
        selected: list[str],
        warnings: list[str],
    ) -> ServiceResult | None:
        """Fail on undefined imports; apply the duplicate-provider policy."""
        templates = self._project.templates
        imported: dict[str, list[str]] = {}
        for template in selected:
            for variable in templates[template].imports:
                imported.setdefault(variable, []).append(template)

        undefined = sorted(tree.undefined_variables() & imported.keys())
        if undefined:
            return ServiceResult.failure(
                op,
                "UNDEFINED_VARIABLES",
                f"Undefined variables: {', '.join(undefined)}",
                variables={v: imported[v] for v in undefined},
            )

        policy = self._project.settings.check.duplicate_providers
        duplicates = {
            v: providers
            for v, providers in tree.duplicate_providers().items()
            if v in imported
        }
        if duplicates and policy == "error":
            return ServiceResult.failure(
                op,
                "DUPLICATE_PROVIDERS",
                f"Variables exported more than once: {', '.join(sorted(duplicates))}",
                variables=duplicates,
            )
        if policy == "warning":
            for variable, providers in duplicates.items():
                warnings.append(f"Variable '{variable}' is exported by {', '.join(providers)}")
        return None

    # ------------------------------------------------------------------
    # retract
    # ------------------------------------------------------------------

    @traced
    def retract(self, template_ids: list[str]) -> ServiceResult:
        """Plan removal of the self-contained part of *template_ids*."""
        op = "retract_plan"
        selected, failure = self._resolve(op, template_ids)
        if failure is not None:
            return failure

        tree = self._project.tree
        warnings = self._load_warnings()
        with trace_span("closure"):
            closed = tree.closed_subset(selected)

        try:
            order = list(reversed(tree.sort(closed)))
        except DependencyCycleError as exc:
            return self._cycle_failure(op, exc)

        kept = set(closed)
        blocked: list[dict[str, Any]] = []
        for template in dict.fromkeys(selected):
            if template in kept:
                continue
            blocked_by = tree.blocking_dependents(template, selected)
            blocked.append({"id": template, "blocked_by": blocked_by})
            warnings.append(f"{template} is still required by {', '.join(blocked_by)}")

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "environment": self._project.settings.environment,
                "count": len(order),
                "steps": self._steps(tree, order, upstream=False),
                "blocked": blocked,
            },
            warnings=warnings,
        )
