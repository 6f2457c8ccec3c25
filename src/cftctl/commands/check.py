"""Command: project validation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from cftctl.commands._base import CftCommand

if TYPE_CHECKING:
    from cftctl.commands._context import AppContext


@click.command(
    cls=CftCommand,
    examples="""\
  cftctl check
  cftctl check --errors-only
  cftctl check --strict
  cftctl -e staging --json check""",
)
@click.option(
    "--min-severity",
    type=click.Choice(["warning", "error"]),
    default="warning",
    help="Hide issues below this severity.",
)
@click.option("--errors-only", is_flag=True, help="Shortcut for --min-severity error.")
@click.option("--strict", is_flag=True, help="Exit with status 1 if any error is found.")
@click.pass_obj
def check(app: AppContext, min_severity: str, errors_only: bool, strict: bool) -> None:
    """Validate templates: undefined imports, duplicate exports, cycles."""
    from cftctl.services.check import CheckService

    threshold = "error" if errors_only else min_severity
    result = CheckService(app.project).check(min_severity=threshold)
    app.emit(result)
    if strict and result.data.get("errors"):
        raise SystemExit(1)
