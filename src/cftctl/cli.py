"""Root CLI group for cftctl with global flags and command registration."""

from __future__ import annotations

from pathlib import Path

import click

from cftctl import __version__
from cftctl.commands import register_commands
from cftctl.commands._context import AppContext
from cftctl.config.settings import CftSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="cftctl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option("-e", "--environment", default=None, help="Target environment.")
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: directory of cftctl.toml, or CWD).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    environment: str | None,
    root: Path | None,
) -> None:
    """cftctl — dependency-aware planning for CloudFormation templates."""
    ctx.ensure_object(dict)
    settings = CftSettings.from_cli(
        config_path=config_path,
        root=root,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
        environment=environment,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
