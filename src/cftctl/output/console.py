"""Rich Console factory and theme for cftctl output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract.  In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

CFT_THEME = Theme(
    {
        "cft.ok": "bold green",
        "cft.error": "bold red",
        "cft.warning": "bold yellow",
        "cft.op": "bold cyan",
        "cft.key": "dim",
        "cft.id": "bold blue",
        "cft.variable": "magenta",
        "cft.step": "dim",
    }
)

_SEVERITY_STYLES: dict[str, str] = {
    "error": "cft.error",
    "warning": "cft.warning",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=CFT_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_severity(severity: str) -> str:
    """Return the Rich style name for an issue severity."""
    return _SEVERITY_STYLES.get(severity, "")
