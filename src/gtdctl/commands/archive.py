"""Command: move records into their directory's archive/ folder."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from gtdctl.commands._base import KIND_CHOICE, GtdCommand, to_kind

if TYPE_CHECKING:
    from gtdctl.commands._context import AppContext


@click.command(
    cls=GtdCommand,
    examples="""\
  gtdctl archive "Write report"
  gtdctl archive tasks/a.md tasks/b.md
  gtdctl --json archive "Launch site" --kind project
  gtdctl archive "Write report" --dry-run""",
)
@click.argument("targets", nargs=-1, required=True)
@click.option("--kind", type=KIND_CHOICE, default=None, help="Restrict lookup to one kind.")
@click.option("--dry-run", is_flag=True, help="Show where files would move without moving them.")
@click.pass_obj
def archive(app: AppContext, targets: tuple[str, ...], kind: str | None, dry_run: bool) -> None:
    """Archive records by title or path (moves the file, keeps its content)."""
    from gtdctl.services.update import UpdateService

    app.emit(
        UpdateService(app.vault).archive(list(targets), kind=to_kind(kind), dry_run=dry_run)
    )
