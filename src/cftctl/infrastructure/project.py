"""Project — the templates of one checkout and their dependency tree.

The Project is the single dependency injected into every service. It
discovers template files under the configured directory, parses them,
drops templates restricted to other environments, and builds the
:class:`DependencyTree` on first use. Nothing is cached across
invocations.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from cftctl.infrastructure.graph import DependencyTree
from cftctl.infrastructure.loader import (
    TemplateLoadError,
    find_template_files,
    load_template,
    template_id_for,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from cftctl.config.settings import CftSettings
    from cftctl.domain.template import TemplateInfo

logger = logging.getLogger(__name__)


class Project:
    """Lazy view of the templates under ``settings.template_root``."""

    def __init__(self, settings: CftSettings) -> None:
        self._settings = settings
        self._templates: dict[str, TemplateInfo] | None = None
        self._load_errors: list[TemplateLoadError] = []
        self._tree: DependencyTree | None = None

    @property
    def settings(self) -> CftSettings:
        return self._settings

    @property
    def root(self) -> Path:
        """Directory template ids are relative to."""
        return self._settings.template_root

    @property
    def templates(self) -> dict[str, TemplateInfo]:
        """Templates for the current environment, keyed by id in path order."""
        if self._templates is None:
            self._templates = self._load()
        return self._templates

    @property
    def load_errors(self) -> list[TemplateLoadError]:
        """Files that could not be parsed during the last load."""
        _ = self.templates
        return list(self._load_errors)

    @property
    def tree(self) -> DependencyTree:
        """The dependency tree, built from the templates on first access."""
        if self._tree is None:
            self._tree = build_tree(self.templates.values())
        return self._tree

    def invalidate(self) -> None:
        """Forget loaded templates and the tree; next access reloads from disk."""
        self._templates = None
        self._load_errors = []
        self._tree = None

    def _load(self) -> dict[str, TemplateInfo]:
        environment = self._settings.environment
        root = self.root
        templates: dict[str, TemplateInfo] = {}
        self._load_errors = []
        for path in find_template_files(root, self._settings.project.extensions):
            try:
                info = load_template(path, root)
            except TemplateLoadError as exc:
                logger.debug("Skipping template %s: %s", path, exc.reason)
                self._load_errors.append(exc)
                continue
            if not info.allowed_in(environment):
                logger.debug("Template %s not deployed to %s", info.id, environment)
                continue
            templates[info.id] = info
        logger.debug("Loaded %d templates from %s", len(templates), root)
        return templates

    def resolve(self, ids: list[str]) -> tuple[list[str], list[str]]:
        """Split *ids* into ``(known, missing)`` template ids.

        Accepts template ids as well as file paths pointing inside the
        template directory.
        """
        known: list[str] = []
        missing: list[str] = []
        for raw in ids:
            template_id = raw
            if template_id not in self.templates:
                candidate = Path(raw)
                if candidate.is_file():
                    template_id = template_id_for(candidate.resolve(), self.root.resolve())
            if template_id in self.templates:
                known.append(template_id)
            else:
                missing.append(raw)
        return known, missing


def build_tree(templates: Iterable[TemplateInfo]) -> DependencyTree:
    """Register every template's exports, imports and declared links."""
    tree = DependencyTree()
    for info in templates:
        for variable in info.exports:
            tree.provide(info.id, variable)
        for variable in info.imports:
            tree.require(info.id, variable)
        for dependency in info.depends_on:
            tree.link(dependency, info.id)
    return tree
