"""CheckService — validate a project before anything is planned.

Single command following the linter pattern. Issues are reported as
data, never raised: the caller decides whether they are fatal.

Categories:
  - load_error: a template file could not be parsed
  - undefined_variable: an import with no matching export
  - duplicate_provider: an export name declared by several templates
  - unknown_dependency: ``Metadata.DependsOn`` names a missing template
  - cycle: templates that depend on each other
"""

from __future__ import annotations

from typing import Any

from cftctl.infrastructure.graph import DependencyTree
from cftctl.services.base import BaseService
from cftctl.services.result import ServiceResult
from cftctl.services.telemetry import trace_span, traced

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"

CAT_LOAD = "load_error"
CAT_UNDEFINED = "undefined_variable"
CAT_DUPLICATE = "duplicate_provider"
CAT_UNKNOWN = "unknown_dependency"
CAT_CYCLE = "cycle"

_SEVERITY_RANK = {SEVERITY_WARNING: 0, SEVERITY_ERROR: 1}


def _issue(category: str, severity: str, message: str, **detail: Any) -> dict[str, Any]:
    return {"category": category, "severity": severity, "message": message, **detail}


class CheckService(BaseService):
    """Handles project validation."""

    @traced
    def check(self, *, min_severity: str = SEVERITY_WARNING) -> ServiceResult:
        """Report every issue at or above *min_severity*."""
        tree = self._project.tree
        issues: list[dict[str, Any]] = []

        with trace_span("load_errors"):
            issues.extend(self._check_load_errors())
        with trace_span("undefined_variables"):
            issues.extend(self._check_undefined(tree))
        with trace_span("duplicate_providers"):
            issues.extend(self._check_duplicates(tree))
        with trace_span("unknown_dependencies"):
            issues.extend(self._check_unknown_dependencies())
        with trace_span("cycles"):
            issues.extend(self._check_cycles(tree))

        threshold = _SEVERITY_RANK.get(min_severity, 0)
        issues = [i for i in issues if _SEVERITY_RANK[i["severity"]] >= threshold]
        errors = sum(1 for i in issues if i["severity"] == SEVERITY_ERROR)

        return ServiceResult(
            ok=True,
            op="check",
            data={
                "templates": len(self._project.templates),
                "count": len(issues),
                "errors": errors,
                "issues": issues,
            },
        )

    # ------------------------------------------------------------------
    # Individual checks
    # ------------------------------------------------------------------

    def _check_load_errors(self) -> list[dict[str, Any]]:
        return [
            _issue(CAT_LOAD, SEVERITY_ERROR, exc.reason, path=str(exc.path))
            for exc in self._project.load_errors
        ]

    def _check_undefined(self, tree: DependencyTree) -> list[dict[str, Any]]:
        return [
            _issue(
                CAT_UNDEFINED,
                SEVERITY_ERROR,
                f"Variable '{variable}' is imported but never exported",
                variable=variable,
                required_by=tree.requirers_of(variable),
            )
            for variable in sorted(tree.undefined_variables())
        ]

    def _check_duplicates(self, tree: DependencyTree) -> list[dict[str, Any]]:
        severity = self._project.settings.check.duplicate_providers
        if severity == "ignore":
            return []
        return [
            _issue(
                CAT_DUPLICATE,
                severity,
                f"Variable '{variable}' is exported by {len(providers)} templates",
                variable=variable,
                provided_by=providers,
            )
            for variable, providers in tree.duplicate_providers().items()
        ]

    def _check_unknown_dependencies(self) -> list[dict[str, Any]]:
        templates = self._project.templates
        issues: list[dict[str, Any]] = []
        for info in templates.values():
            for dependency in info.depends_on:
                if dependency not in templates:
                    issues.append(
                        _issue(
                            CAT_UNKNOWN,
                            SEVERITY_ERROR,
                            f"{info.id} depends on unknown template '{dependency}'",
                            id=info.id,
                            dependency=dependency,
                        )
                    )
        return issues

    def _check_cycles(self, tree: DependencyTree) -> list[dict[str, Any]]:
        return [
            _issue(
                CAT_CYCLE,
                SEVERITY_ERROR,
                "Dependency cycle: " + " -> ".join([*cycle, cycle[0]]),
                cycle=cycle,
            )
            for cycle in tree.cycles()
        ]
