"""Command group: relationship contexts around an area, project, or task."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from gtdctl.commands._base import GtdGroup
from gtdctl.services.context import ContextService

if TYPE_CHECKING:
    from gtdctl.commands._context import AppContext

_CONTEXT_EXAMPLES = """\
  gtdctl context area Work
  gtdctl context project "Launch site"
  gtdctl context task "Write report"
  gtdctl --json context area areas/work.md"""


@click.group(cls=GtdGroup, examples=_CONTEXT_EXAMPLES)
def context() -> None:
    """Show a record together with the records related to it."""


@context.command(
    examples="""\
  gtdctl context area Work
  gtdctl -v context area Personal"""
)
@click.argument("name")
@click.pass_obj
def area(app: AppContext, name: str) -> None:
    """An area, its projects, and its tasks (direct and via projects)."""
    app.emit(ContextService(app.vault).area_context(name))


@context.command(
    examples="""\
  gtdctl context project "Launch site"
  gtdctl --json context project projects/launch-site.md"""
)
@click.argument("name")
@click.pass_obj
def project(app: AppContext, name: str) -> None:
    """A project, its area, and its tasks."""
    app.emit(ContextService(app.vault).project_context(name))


@context.command(
    examples="""\
  gtdctl context task "Write report"
  gtdctl --json context task tasks/write-report.md"""
)
@click.argument("name")
@click.pass_obj
def task(app: AppContext, name: str) -> None:
    """A task, its project, and its area."""
    app.emit(ContextService(app.vault).task_context(name))
