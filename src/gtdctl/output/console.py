"""Rich Console factory and theme for gtdctl output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract. In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

GTD_THEME = Theme(
    {
        "gtd.ok": "bold green",
        "gtd.error": "bold red",
        "gtd.warning": "bold yellow",
        "gtd.op": "bold cyan",
        "gtd.key": "dim",
        "gtd.path": "dim",
        "gtd.title": "bold",
        "gtd.kind.task": "yellow",
        "gtd.kind.project": "blue",
        "gtd.kind.area": "green",
        "gtd.status.closed": "dim",
        "gtd.status.active": "cyan",
        "gtd.due.overdue": "bold red",
    }
)

_KIND_STYLES: dict[str, str] = {
    "task": "gtd.kind.task",
    "project": "gtd.kind.project",
    "area": "gtd.kind.area",
}

_CLOSED_STATUSES = frozenset({"done", "dropped", "archived"})
_ACTIVE_STATUSES = frozenset({"in-progress", "ready", "active"})


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=GTD_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_kind(kind: str) -> str:
    """Return the Rich style name for a record kind."""
    return _KIND_STYLES.get(kind, "")


def style_for_status(status: str | None) -> str:
    if status in _CLOSED_STATUSES:
        return "gtd.status.closed"
    if status in _ACTIVE_STATUSES:
        return "gtd.status.active"
    return ""
