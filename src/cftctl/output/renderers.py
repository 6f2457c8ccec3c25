"""Human-readable rendering of ServiceResult, one renderer per operation.

:func:`render_result` picks a renderer by ``result.op`` and draws into a
StringIO-backed console; ops without a renderer get a key/value dump.
:func:`render_quiet` prints bare template ids for shell pipelines.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from cftctl.output.console import create_console, get_output, style_for_severity

if TYPE_CHECKING:
    from collections.abc import Callable

    from rich.console import Console

    from cftctl.services.result import ServiceResult

    type Renderer = Callable[..., None]


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render *result* as text; plain when the output is not a terminal."""
    console = create_console()
    if result.ok:
        _OP_RENDERERS.get(result.op, _render_generic)(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)
    if verbose:
        _render_timing(console, result)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Template ids, one per line, in the order the operation produced them."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    if "closed" in result.data:
        return "\n".join(result.data["closed"])

    rows = result.data.get("steps") or result.data.get("items")
    if isinstance(rows, list) and rows:
        return "\n".join(str(row["id"]) for row in rows if isinstance(row, dict))

    return f"OK: {result.op}"


# ── Shared pieces ─────────────────────────────────────────────────────


def _render_timing(console: Console, result: ServiceResult) -> None:
    """Draw the span tree collected under ``-v``."""
    span = (result.meta or {}).get("telemetry")
    if not span:
        return
    console.print()
    tree = Tree(Text("timing", style="dim"))
    _add_span(tree, span)
    console.print(tree)


def _add_span(parent: Tree, span: dict[str, Any]) -> None:
    ms = span.get("duration_ms", 0.0)
    if ms > 1000:
        style = "bold red"
    elif ms > 100:
        style = "yellow"
    else:
        style = "dim"
    label = Text(f"{ms:>8.2f}ms", style=style)
    label.append(f"  {span.get('name', '?')}")
    notes = span.get("annotations")
    if notes:
        label.append("  (" + ", ".join(f"{k}={v}" for k, v in notes.items()) + ")")
    branch = parent.add(label)
    for child in span.get("children", []):
        _add_span(branch, child)


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    console.print(
        Text.assemble(
            ("ERROR", "cft.error"),
            "  ",
            (result.op, "cft.op"),
            " — ",
            err.message if err else "Unknown error",
        )
    )
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for key, value in err.detail.items():
            console.print(Text(f"    {key}: {value}"))


def _render_blocked(console: Console, blocked: list[dict[str, Any]], *, marker: str) -> None:
    for entry in blocked:
        blockers = ", ".join(entry.get("blocked_by", []))
        console.print(f"  {marker}[cft.id]{entry['id']}[/cft.id]  required by {blockers}")


# ── Graph ─────────────────────────────────────────────────────────────


def _render_edges(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Neighbouring templates with the variables and links connecting them."""
    items = result.data.get("items", [])
    console.print(f"[cft.id]{result.data.get('id', '')}[/cft.id]")

    if items:
        heading = "Depends on" if result.op == "dependencies" else "Required by"
        table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
        table.add_column(heading, style="cft.id", no_wrap=True)
        table.add_column("Variables", style="cft.variable")
        table.add_column("Linked")
        for item in items:
            table.add_row(
                str(item.get("id", "")),
                ", ".join(item.get("variables", [])),
                "yes" if item.get("linked") else "",
            )
        console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} templates")


def _render_closed(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    console.print(Text.assemble(("OK", "cft.ok"), "  ", (result.op, "cft.op")))
    for template in result.data.get("closed", []):
        console.print(f"  [cft.ok]✓[/cft.ok] [cft.id]{template}[/cft.id]")
    _render_blocked(console, result.data.get("blocked", []), marker="[cft.error]✗[/cft.error] ")


# ── Check ─────────────────────────────────────────────────────────────


def _issue_location(issue: dict[str, Any]) -> str:
    """Where an issue points: the template, the variable, or the file."""
    if "cycle" in issue:
        return issue["cycle"][0] if issue["cycle"] else ""
    for key in ("id", "variable", "path"):
        if issue.get(key):
            return str(issue[key])
    return ""


def _render_check(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    issues = result.data.get("issues", [])
    templates = result.data.get("templates", 0)
    if not issues:
        console.print(f"[cft.ok]No issues found[/cft.ok] ({templates} templates)")
        return

    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Severity")
    table.add_column("Category")
    table.add_column("Location", style="cft.id", overflow="fold")
    table.add_column("Message")
    for issue in issues:
        severity = str(issue.get("severity", ""))
        table.add_row(
            Text(severity, style=style_for_severity(severity)),
            str(issue.get("category", "")),
            _issue_location(issue),
            str(issue.get("message", "")),
        )
    console.print(table)
    errors = result.data.get("errors", 0)
    console.print(f"\n{len(issues)} issues ({errors} errors) in {templates} templates")


# ── Plan ──────────────────────────────────────────────────────────────


def _render_plan(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Numbered steps; ``-v`` adds what each step waits for."""
    action = "Deploy" if result.op == "deploy_plan" else "Retract"
    environment = result.data.get("environment")
    title = f"{action} plan" + (f" for [bold]{environment}[/bold]" if environment else "")
    console.print(title)

    steps = result.data.get("steps", [])
    for step in steps:
        after = step.get("after", [])
        suffix = f"  [cft.step](after {', '.join(after)})[/cft.step]" if after and verbose else ""
        console.print(f"  {step['step']:>3}. [cft.id]{step['id']}[/cft.id]{suffix}")

    blocked = result.data.get("blocked", [])
    if blocked:
        console.print("\n[cft.warning]Blocked[/cft.warning]")
        _render_blocked(console, blocked, marker="")

    console.print(f"\n{result.data.get('count', len(steps))} steps")


# ── Fallback ──────────────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    console.print(Text.assemble(("OK", "cft.ok"), "  ", (result.op, "cft.op")))
    for key, value in result.data.items():
        shown = json.dumps(value, separators=(",", ":")) if isinstance(value, dict | list) else value
        console.print(
            Text.assemble(
                (f"  {key}: ", "cft.key"),
                (str(shown), "cft.id" if key == "id" else ""),
            )
        )


_OP_RENDERERS: dict[str, Renderer] = {
    "dependencies": _render_edges,
    "dependents": _render_edges,
    "closed_subset": _render_closed,
    "check": _render_check,
    "deploy_plan": _render_plan,
    "retract_plan": _render_plan,
}
