"""Subcommand modules for cftctl.

Provides register_commands() which uses deferred imports to keep
``cftctl --help`` fast as the codebase grows.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group.

    2 groups (have subcommands) + 1 standalone command.
    """
    # --- Groups ---
    from cftctl.commands.graph import graph
    from cftctl.commands.plan import plan

    cli.add_command(graph)
    cli.add_command(plan)

    # --- Standalone commands ---
    from cftctl.commands.check import check

    cli.add_command(check)
