"""Commands: list, show, find, search, and today."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any

import click

from gtdctl.commands._base import KIND_CHOICE, GtdCommand, GtdGroup, to_kind
from gtdctl.domain.types import RecordKind
from gtdctl.services.filtering import RecordFilter, parse_status_list
from gtdctl.services.query import QueryService

if TYPE_CHECKING:
    from gtdctl.commands._context import AppContext

_LIST_EXAMPLES = """\
  gtdctl list tasks
  gtdctl list tasks --status ready,in-progress --area Work
  gtdctl list tasks --due this-week --sort due
  gtdctl list tasks --overdue
  gtdctl list tasks --completed-after 2025-01-01 --sort completed-at --desc
  gtdctl list projects --area Work
  gtdctl list areas --include-archived"""


def _common_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every ``list`` subcommand."""
    options = [
        click.option("--status", "statuses", multiple=True, help="Status filter (comma-separated OR)."),
        click.option("--query", "text", default=None, help="Substring of title, body or description."),
        click.option("--include-archived", is_flag=True, help="Include records under archive/."),
        click.option("--only-archived", is_flag=True, help="Only records under archive/."),
        click.option("--sort", default=None, help="Sort field (title, status, due, ...)."),
        click.option("--desc", "descending", is_flag=True, help="Sort descending."),
        click.option("--limit", default=None, type=int, help="Max results."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group(name="list", cls=GtdGroup, examples=_LIST_EXAMPLES)
def list_group() -> None:
    """List tasks, projects, or areas with filters."""


@list_group.command(
    examples="""\
  gtdctl list tasks
  gtdctl list tasks --status blocked
  gtdctl list tasks --project "Launch site" --include-done
  gtdctl list tasks --scheduled today
  gtdctl --json list tasks --area Work --limit 5"""
)
@_common_options
@click.option("--project", default=None, help="Project name (substring).")
@click.option("--area", default=None, help="Area name (substring, direct or via project).")
@click.option("--due", default=None, help="today, tomorrow, this-week or YYYY-MM-DD.")
@click.option("--overdue", is_flag=True, help="Only tasks due before today.")
@click.option("--scheduled", default=None, help="today, tomorrow, this-week or YYYY-MM-DD.")
@click.option("--completed-after", default=None, help="Completed on or after YYYY-MM-DD.")
@click.option("--completed-before", default=None, help="Completed on or before YYYY-MM-DD.")
@click.option("--include-done", is_flag=True, help="Include done tasks.")
@click.option("--include-dropped", is_flag=True, help="Include dropped tasks.")
@click.option("--include-closed", is_flag=True, help="Include done and dropped tasks.")
@click.option("--include-icebox", is_flag=True, help="Include icebox tasks.")
@click.option("--include-deferred", is_flag=True, help="Include tasks deferred past today.")
@click.pass_obj
def tasks(
    app: AppContext,
    statuses: tuple[str, ...],
    text: str | None,
    include_archived: bool,
    only_archived: bool,
    sort: str | None,
    descending: bool,
    limit: int | None,
    project: str | None,
    area: str | None,
    due: str | None,
    overdue: bool,
    scheduled: str | None,
    completed_after: str | None,
    completed_before: str | None,
    include_done: bool,
    include_dropped: bool,
    include_closed: bool,
    include_icebox: bool,
    include_deferred: bool,
) -> None:
    """List tasks. Done, dropped, icebox and deferred tasks are hidden by default."""
    flt = RecordFilter(
        statuses=parse_status_list(statuses),
        project=project,
        area=area,
        due=due,
        overdue=overdue,
        scheduled=scheduled,
        query=text,
        completed_after=completed_after,
        completed_before=completed_before,
        include_done=include_done,
        include_dropped=include_dropped,
        include_closed=include_closed,
        include_icebox=include_icebox,
        include_deferred=include_deferred,
        include_archived=include_archived,
        only_archived=only_archived,
    )
    app.emit(
        QueryService(app.vault).list_tasks(flt, sort=sort, descending=descending, limit=limit)
    )


@list_group.command(
    examples="""\
  gtdctl list projects
  gtdctl list projects --area Work --sort end-date
  gtdctl list projects --status done"""
)
@_common_options
@click.option("--area", default=None, help="Area name (substring).")
@click.option("--include-done", is_flag=True, help="Include done projects.")
@click.pass_obj
def projects(
    app: AppContext,
    statuses: tuple[str, ...],
    text: str | None,
    include_archived: bool,
    only_archived: bool,
    sort: str | None,
    descending: bool,
    limit: int | None,
    area: str | None,
    include_done: bool,
) -> None:
    """List projects. Done projects are hidden by default."""
    flt = RecordFilter(
        statuses=parse_status_list(statuses),
        area=area,
        query=text,
        include_done=include_done,
        include_archived=include_archived,
        only_archived=only_archived,
    )
    app.emit(
        QueryService(app.vault).list_projects(flt, sort=sort, descending=descending, limit=limit)
    )


@list_group.command(
    examples="""\
  gtdctl list areas
  gtdctl list areas --include-archived"""
)
@_common_options
@click.pass_obj
def areas(
    app: AppContext,
    statuses: tuple[str, ...],
    text: str | None,
    include_archived: bool,
    only_archived: bool,
    sort: str | None,
    descending: bool,
    limit: int | None,
) -> None:
    """List areas. Areas with status archived are hidden by default."""
    flt = RecordFilter(
        statuses=parse_status_list(statuses),
        query=text,
        include_archived=include_archived,
        only_archived=only_archived,
    )
    app.emit(
        QueryService(app.vault).list_areas(flt, sort=sort, descending=descending, limit=limit)
    )


@click.command(
    cls=GtdCommand,
    examples="""\
  gtdctl show "Write report"
  gtdctl show tasks/write-report.md
  gtdctl show Work --kind area
  gtdctl --json show "Launch site" --include-archived""",
)
@click.argument("query_text")
@click.option("--kind", type=KIND_CHOICE, default=None, help="Restrict to one record kind.")
@click.option("--include-archived", is_flag=True, help="Also look under archive/.")
@click.pass_obj
def show(app: AppContext, query_text: str, kind: str | None, include_archived: bool) -> None:
    """Show one record, found by path or title, with its body."""
    app.emit(
        QueryService(app.vault).show(
            query_text, kind=to_kind(kind), include_archived=include_archived
        )
    )


@click.command(
    cls=GtdCommand,
    examples="""\
  gtdctl find task report
  gtdctl --json find project launch""",
)
@click.argument("kind", type=KIND_CHOICE)
@click.argument("title")
@click.pass_obj
def find(app: AppContext, kind: str, title: str) -> None:
    """Every record of KIND whose title matches TITLE (exact first, then substring)."""
    app.emit(QueryService(app.vault).find(RecordKind(kind), title))


@click.command(
    cls=GtdCommand,
    examples="""\
  gtdctl search invoice
  gtdctl search "quarterly review" --kind task --limit 5
  gtdctl --json search budget --include-archived""",
)
@click.argument("text")
@click.option("--kind", "kinds", type=KIND_CHOICE, multiple=True, help="Restrict to kinds.")
@click.option("--include-archived", is_flag=True, help="Also search under archive/.")
@click.option("--limit", default=None, type=int, help="Max results.")
@click.pass_obj
def search(
    app: AppContext,
    text: str,
    kinds: tuple[str, ...],
    include_archived: bool,
    limit: int | None,
) -> None:
    """Case-insensitive text search over titles, bodies and descriptions."""
    app.emit(
        QueryService(app.vault).search(
            text,
            kinds=tuple(RecordKind(k) for k in kinds) or None,
            include_archived=include_archived,
            limit=limit,
        )
    )


@click.command(
    cls=GtdCommand,
    examples="""\
  gtdctl today
  gtdctl today --on 2025-03-03
  gtdctl --json today""",
)
@click.option(
    "--on",
    "day",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Show the list for YYYY-MM-DD instead of today.",
)
@click.pass_obj
def today(app: AppContext, day: datetime | None) -> None:
    """Tasks in progress, overdue, due or scheduled today, or starting today."""
    app.emit(QueryService(app.vault).today(on=day.date() if day is not None else None))
