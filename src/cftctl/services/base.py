"""BaseService — abstract foundation for all cftctl services.

Every service receives a :class:`Project` at construction time. The
Project provides the parsed templates and the dependency tree.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from cftctl.services.result import ServiceResult

if TYPE_CHECKING:
    from cftctl.infrastructure.project import Project


class BaseService:
    """Abstract base for all service-layer classes.

    Usage::

        class PlanService(BaseService):
            def deploy(self, ids: list[str]) -> ServiceResult:
                tree = self._project.tree
                ...
    """

    def __init__(self, project: Project) -> None:
        self._project = project

    def _resolve(self, op: str, ids: list[str]) -> tuple[list[str], ServiceResult | None]:
        """Map *ids* to known template ids, or a NOT_FOUND failure."""
        known, missing = self._project.resolve(ids)
        if missing:
            noun = "Template" if len(missing) == 1 else "Templates"
            return known, ServiceResult.failure(
                op,
                "NOT_FOUND",
                f"{noun} not found: {', '.join(missing)}",
                missing=missing,
            )
        return known, None

    def _load_warnings(self) -> list[str]:
        """One warning per template file that failed to parse."""
        return [f"Skipped {exc.path}: {exc.reason}" for exc in self._project.load_errors]
