"""Command group: create tasks, projects, and areas."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from gtdctl.commands._base import GtdGroup
from gtdctl.services.create import CreateService

if TYPE_CHECKING:
    from gtdctl.commands._context import AppContext

_NEW_EXAMPLES = """\
  gtdctl new task "Write report" --project "Q1 Review" --due 2025-01-15
  gtdctl new project "Launch site" --area Work --end-date 2025-03-31
  gtdctl new area Health --type personal"""


@click.group(cls=GtdGroup, examples=_NEW_EXAMPLES)
def new() -> None:
    """Create a new task, project, or area file."""


@new.command(
    examples="""\
  gtdctl new task "Call dentist"
  gtdctl new task "Write report" --status ready --project "Q1 Review"
  gtdctl new task "Renew passport" --area Personal --defer-until 2025-06-01
  gtdctl --json new task "Pay invoice" --due 2025-01-31"""
)
@click.argument("title")
@click.option("--status", default=None, help="Initial status (default from config).")
@click.option("--area", default=None, help="Area name.")
@click.option("--project", default=None, help="Project name.")
@click.option("--due", default=None, help="Due date (YYYY-MM-DD).")
@click.option("--scheduled", default=None, help="Scheduled date (YYYY-MM-DD).")
@click.option("--defer-until", default=None, help="Hide until this date (YYYY-MM-DD).")
@click.option("--body", default="", help="Markdown body.")
@click.pass_obj
def task(
    app: AppContext,
    title: str,
    status: str | None,
    area: str | None,
    project: str | None,
    due: str | None,
    scheduled: str | None,
    defer_until: str | None,
    body: str,
) -> None:
    """Create a task."""
    app.emit(
        CreateService(app.vault).create_task(
            title,
            status=status,
            area=area,
            project=project,
            due=due,
            scheduled=scheduled,
            defer_until=defer_until,
            body=body,
        )
    )


@new.command(
    examples="""\
  gtdctl new project "Launch site" --area Work
  gtdctl new project "Q1 Review" --status planning --start-date 2025-01-01"""
)
@click.argument("title")
@click.option("--status", default=None, help="Initial status.")
@click.option("--area", default=None, help="Area name.")
@click.option("--start-date", default=None, help="Start date (YYYY-MM-DD).")
@click.option("--end-date", default=None, help="End date (YYYY-MM-DD).")
@click.option("--description", default=None, help="One-line description.")
@click.option("--body", default="", help="Markdown body.")
@click.pass_obj
def project(
    app: AppContext,
    title: str,
    status: str | None,
    area: str | None,
    start_date: str | None,
    end_date: str | None,
    description: str | None,
    body: str,
) -> None:
    """Create a project."""
    app.emit(
        CreateService(app.vault).create_project(
            title,
            status=status,
            area=area,
            start_date=start_date,
            end_date=end_date,
            description=description,
            body=body,
        )
    )


@new.command(
    examples="""\
  gtdctl new area Health
  gtdctl new area Work --type professional --description "Day job\""""
)
@click.argument("title")
@click.option("--status", default=None, help="Initial status (default from config).")
@click.option("--type", "area_type", default=None, help="Free-form area type.")
@click.option("--description", default=None, help="One-line description.")
@click.option("--body", default="", help="Markdown body.")
@click.pass_obj
def area(
    app: AppContext,
    title: str,
    status: str | None,
    area_type: str | None,
    description: str | None,
    body: str,
) -> None:
    """Create an area."""
    app.emit(
        CreateService(app.vault).create_area(
            title,
            status=status,
            area_type=area_type,
            description=description,
            body=body,
        )
    )
