"""Command group: template dependency queries."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from cftctl.commands._base import CftGroup, template_ids
from cftctl.services.graph import GraphService

if TYPE_CHECKING:
    from cftctl.commands._context import AppContext

_GRAPH_EXAMPLES = """\
  cftctl graph dependencies network/vpc.yaml
  cftctl graph dependents vpc/base.yaml
  cftctl graph closed app/web.yaml app/worker.yaml
  cftctl --json graph dependents vpc/base.yaml"""


@click.group(cls=CftGroup, examples=_GRAPH_EXAMPLES)
@click.pass_obj
def graph(app: AppContext) -> None:
    """Query dependencies between templates."""


@graph.command(
    examples="""\
  cftctl graph dependencies network/vpc.yaml
  cftctl -e production graph dependencies app/web.yaml
  cftctl --json graph dependencies network/vpc.yaml"""
)
@click.argument("template_id")
@click.pass_obj
def dependencies(app: AppContext, template_id: str) -> None:
    """List the templates TEMPLATE_ID depends on."""
    app.emit(GraphService(app.project).dependencies(template_id))


@graph.command(
    examples="""\
  cftctl graph dependents vpc/base.yaml
  cftctl -q graph dependents vpc/base.yaml"""
)
@click.argument("template_id")
@click.pass_obj
def dependents(app: AppContext, template_id: str) -> None:
    """List the templates that depend on TEMPLATE_ID."""
    app.emit(GraphService(app.project).dependents(template_id))


@graph.command(
    examples="""\
  cftctl graph closed app/web.yaml app/worker.yaml
  cftctl -q graph closed app/web.yaml network/vpc.yaml"""
)
@template_ids()
@click.pass_obj
def closed(app: AppContext, template_ids: tuple[str, ...]) -> None:
    """Show which of the given templates can be acted on together."""
    app.emit(GraphService(app.project).closed_subset(list(template_ids)))
