"""Command group: deploy and retract planning."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from cftctl.commands._base import CftGroup, template_ids
from cftctl.services.plan import PlanService

if TYPE_CHECKING:
    from cftctl.commands._context import AppContext

_PLAN_EXAMPLES = """\
  cftctl plan deploy
  cftctl -e production plan deploy app/web.yaml --with-dependencies
  cftctl plan retract app/web.yaml app/worker.yaml
  cftctl --json plan retract network/vpc.yaml"""


@click.group(cls=CftGroup, examples=_PLAN_EXAMPLES)
@click.pass_obj
def plan(app: AppContext) -> None:
    """Compute safe deploy and retract orders."""


@plan.command(
    examples="""\
  cftctl plan deploy
  cftctl plan deploy app/web.yaml
  cftctl plan deploy app/web.yaml --with-dependencies
  cftctl -q plan deploy"""
)
@template_ids(required=False)
@click.option(
    "--with-dependencies/--without-dependencies",
    default=None,
    help="Also deploy everything the selection depends on.",
)
@click.pass_obj
def deploy(app: AppContext, template_ids: tuple[str, ...], with_dependencies: bool | None) -> None:
    """Order templates for deployment (all templates if none given)."""
    svc = PlanService(app.project)
    app.emit(svc.deploy(list(template_ids), with_dependencies=with_dependencies))


@plan.command(
    examples="""\
  cftctl plan retract app/web.yaml
  cftctl plan retract app/web.yaml network/vpc.yaml
  cftctl --json plan retract app/worker.yaml"""
)
@template_ids()
@click.pass_obj
def retract(app: AppContext, template_ids: tuple[str, ...]) -> None:
    """Order the self-contained part of the given templates for removal."""
    app.emit(PlanService(app.project).retract(list(template_ids)))
