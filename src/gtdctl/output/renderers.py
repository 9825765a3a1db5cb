"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from gtdctl.domain.dates import DateValue, today
from gtdctl.output.console import create_console, get_output, style_for_kind, style_for_status

if TYPE_CHECKING:
    from rich.console import Console

    from gtdctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode: one path per line."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    items = result.data.get("items") or result.data.get("succeeded")
    if items and isinstance(items, list):
        return "\n".join(str(item["path"]) for item in items if item.get("path"))
    if "path" in result.data:
        return str(result.data["path"])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    if result.data.get("dry_run"):
        label = Text("DRY RUN", style="gtd.warning")
    else:
        label = Text("OK", style="gtd.ok")
    op = Text(f"  {result.op}", style="gtd.op")
    console.print(label, op)


def _field(console: Console, key: str, value: Any) -> None:
    k = Text(f"  {key}: ", style="gtd.key")
    if key in ("path", "archived_path"):
        v = Text(str(value), style="gtd.path")
    elif key == "title":
        v = Text(str(value), style="gtd.title")
    elif isinstance(value, (dict, list)):
        v = Text(json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v)


def _status_text(status: Any) -> Text:
    value = "" if status is None else str(status)
    return Text(value, style=style_for_status(value))


def _due_text(value: Any, status: Any) -> Text:
    if value is None:
        return Text("")
    text = str(value)
    if status in ("done", "dropped"):
        return Text(text)
    try:
        overdue = DateValue.parse(text).date < today()
    except ValueError:
        overdue = False
    return Text(text, style="gtd.due.overdue" if overdue else "")


def _reference_label(value: Any) -> str:
    if isinstance(value, list):
        value = value[0] if value else None
    if value is None:
        return ""
    text = str(value)
    if text.startswith("[[") and text.endswith("]]"):
        text = text[2:-2].split("|", 1)[0].split("#", 1)[0]
    return text


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(console: Console, span: dict[str, Any], indent: int = 4) -> None:
    prefix = " " * indent
    duration = span.get("duration_ms", 0.0)
    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"
    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {span.get('name', '?')}"
    annotations = span.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)
    for child in span.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


_KIND_COLUMNS: dict[str, list[tuple[str, str]]] = {
    "task": [("status", "Status"), ("due", "Due"), ("projects", "Project"), ("area", "Area")],
    "project": [("status", "Status"), ("area", "Area"), ("end-date", "End")],
    "area": [("status", "Status"), ("type", "Type")],
    "today": [("status", "Status"), ("due", "Due"), ("projects", "Project"), ("today", "Why")],
}


def _record_table(
    items: list[dict[str, Any]],
    *,
    kind: str | None = None,
    verbose: bool = False,
) -> Table:
    """Build a Rich Table for a list of record summaries."""
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Title", style="gtd.title")
    columns = _KIND_COLUMNS.get(kind or "", [("kind", "Kind"), ("status", "Status")])
    for _key, header in columns:
        table.add_column(header)
    if verbose:
        table.add_column("Path", style="gtd.path")

    for item in items:
        row: list[Any] = [Text(str(item.get("title", "")), style=style_for_kind(item.get("kind", "")))]
        for key, _header in columns:
            value = item.get(key)
            if key == "status":
                row.append(_status_text(value))
            elif key == "due":
                row.append(_due_text(value, item.get("status")))
            elif key in ("area", "projects"):
                row.append(_reference_label(value))
            elif isinstance(value, list):
                row.append(", ".join(str(v) for v in value))
            else:
                row.append("" if value is None else str(value))
        if verbose:
            row.append(str(item.get("path", "")))
        table.add_row(*row)
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    console.print(Text("ERROR", style="gtd.error"), Text(f"  {result.op}", style="gtd.op"), msg)

    if err is None:
        return
    for candidate in err.detail.get("candidates", []):
        console.print(f"  candidate: {candidate.get('title')}  [gtd.path]{candidate.get('path')}[/gtd.path]")
    for item in result.data.get("succeeded", []):
        console.print(f"  ok: [gtd.path]{item.get('archived_path') or item.get('path')}[/gtd.path]")
    for failure in result.data.get("failed", []):
        console.print(f"  failed: {failure.get('target')}  {failure.get('code')}: {failure.get('message')}")
    if verbose:
        for k, v in err.detail.items():
            if k not in ("candidates", "failed"):
                console.print(f"    {k}: {v}")


# ── Mutation renderers ────────────────────────────────────────────────


def _render_mutation(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render create/update results."""
    _status_line(console, result)
    for key in ("kind", "title", "path", "fields"):
        if key in result.data:
            _field(console, key, result.data[key])
    record = result.data.get("record") or {}
    if "status" in record and record["status"] is not None:
        _field(console, "status", record["status"])
    if result.data.get("dry_run"):
        _render_changes(console, result.data.get("changes") or [])
    if verbose:
        _render_meta(console, result)


def _render_changes(console: Console, changes: list[dict[str, Any]], *, indent: int = 2) -> None:
    prefix = " " * indent
    for change in changes:
        old = "(unset)" if change.get("old") is None else change["old"]
        new = "(unset)" if change.get("new") is None else change["new"]
        console.print(Text(f"{prefix}{change.get('field')}: {old} -> {new}"))


def _render_append(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render append_body results."""
    _status_line(console, result)
    for key in ("kind", "title", "path", "appended"):
        if key in result.data:
            _field(console, key, result.data[key])
    if verbose:
        _render_meta(console, result)


def _render_batch(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render set_status / batch_update / archive results."""
    _status_line(console, result)
    succeeded = result.data.get("succeeded", [])
    for item in succeeded:
        target = item.get("archived_path") or item.get("path", "")
        status = (item.get("record") or {}).get("status")
        suffix = f"  -> {status}" if status else ""
        console.print(f"  [gtd.path]{target}[/gtd.path]{suffix}")
        if result.data.get("dry_run"):
            _render_changes(console, item.get("changes") or [], indent=4)
    _field(console, "succeeded", len(succeeded))
    if verbose:
        _render_meta(console, result)


# ── Query renderers ───────────────────────────────────────────────────


def _render_list(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render list_*/find/search results as a table."""
    items = result.data.get("items", [])
    kind = result.data.get("kind")
    console.print(_record_table(items, kind=kind, verbose=verbose))
    noun = f"{kind}s" if kind else "records"
    console.print(f"\n{result.data.get('count', len(items))} {noun}")
    if verbose:
        _render_meta(console, result)


def _render_today(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    console.print(_record_table(items, kind="today", verbose=verbose))
    console.print(f"\n{result.data.get('count', len(items))} tasks for {result.data.get('date', 'today')}")
    if verbose:
        _render_meta(console, result)


def _record_panel(record: dict[str, Any], *, show_body: bool = True) -> Panel:
    lines: list[str] = []
    for key, value in record.items():
        if key in ("title", "body", "path", "extra", "kind") or value in (None, [], ""):
            continue
        if isinstance(value, list):
            value = ", ".join(str(v) for v in value)
        lines.append(f"{key}: {value}")
    for key, value in (record.get("extra") or {}).items():
        lines.append(f"{key}: {value}")
    lines.append(f"path: {record.get('path', '')}")
    content = "\n".join(lines)
    body = record.get("body") or ""
    if show_body and body:
        content += f"\n\n{body.strip()}"
    kind = str(record.get("kind", ""))
    return Panel(
        content,
        title=f"{kind}: {record.get('title', 'Untitled')}",
        border_style=style_for_kind(kind) or "dim",
        expand=False,
    )


def _render_show(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    console.print(_record_panel(result.data.get("record", {})))
    if verbose:
        _render_meta(console, result)


def _render_context(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render area/project/task context: focal panel plus related tables."""
    d = result.data
    focal_key = result.op.removesuffix("_context")
    console.print(_record_panel(d.get(focal_key, {}), show_body=verbose))

    for key in ("area", "project"):
        if key == focal_key or key not in d:
            continue
        related = d.get(key)
        label = related.get("title") if related else "(none)"
        _field(console, key, label)

    projects = d.get("projects")
    if projects:
        console.print(Text(f"\nProjects ({len(projects)})", style="bold"))
        console.print(_record_table(projects, kind="project", verbose=verbose))

    tasks = d.get("tasks")
    if tasks is not None:
        console.print(Text(f"\nTasks ({len(tasks)})", style="bold"))
        if tasks:
            console.print(_record_table(tasks, kind="task", verbose=verbose))
    if verbose:
        _render_meta(console, result)


# ── Check renderer ────────────────────────────────────────────────────


def _render_check(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    counts = d.get("counts", {})
    _status_line(console, result)
    for key in ("tasks", "projects", "areas", "skipped"):
        _field(console, key, counts.get(key, 0))

    issues = d.get("issues", [])
    if not issues:
        console.print("  [gtd.ok]No issues found[/gtd.ok]")
        if verbose:
            _render_meta(console, result)
        return

    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Severity")
    table.add_column("Category")
    table.add_column("Message")
    if verbose:
        table.add_column("Path", style="gtd.path")
    for issue in issues:
        severity = str(issue.get("severity", ""))
        style = "gtd.error" if severity == "error" else "gtd.warning"
        row: list[Any] = [
            Text(severity, style=style),
            str(issue.get("category", "")),
            str(issue.get("message", "")),
        ]
        if verbose:
            row.append(str(issue.get("path") or ""))
        table.add_row(*row)
    console.print(table)
    console.print(f"\n{counts.get('errors', 0)} errors, {counts.get('warnings', 0)} warnings")
    if verbose:
        _render_meta(console, result)


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Mutations
    "create_task": _render_mutation,
    "create_project": _render_mutation,
    "create_area": _render_mutation,
    "update": _render_mutation,
    "batch_update": _render_batch,
    "set_status": _render_batch,
    "archive": _render_batch,
    "append_body": _render_append,
    # Queries
    "list_tasks": _render_list,
    "list_projects": _render_list,
    "list_areas": _render_list,
    "find": _render_list,
    "search": _render_list,
    "today": _render_today,
    "show": _render_show,
    "area_context": _render_context,
    "project_context": _render_context,
    "task_context": _render_context,
    # Integrity
    "check": _render_check,
}
