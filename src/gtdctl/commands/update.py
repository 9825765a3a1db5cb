"""Commands: update frontmatter fields and change status."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from gtdctl.commands._base import KIND_CHOICE, GtdCommand, to_kind
from gtdctl.infrastructure.writer import FieldEdit
from gtdctl.services.update import UpdateService

if TYPE_CHECKING:
    from gtdctl.commands._context import AppContext


def _parse_assignment(raw: str) -> FieldEdit:
    field, sep, value = raw.partition("=")
    if not sep or not field.strip():
        raise click.BadParameter(f"expected FIELD=VALUE, got {raw!r}", param_hint="--set")
    return FieldEdit.set(field.strip(), value.strip())


@click.command(
    cls=GtdCommand,
    examples="""\
  gtdctl update "Write report" --set due=2025-02-01
  gtdctl update tasks/write-report.md --set project="Q1 Review" --unset scheduled
  gtdctl update "Launch site" --kind project --set end-date=2025-04-30
  gtdctl update "Write report" "Call dentist" --set area=Work""",
)
@click.argument("targets", nargs=-1, required=True)
@click.option("--set", "assignments", multiple=True, help="FIELD=VALUE to set (repeatable).")
@click.option("--unset", "removals", multiple=True, help="FIELD to remove (repeatable).")
@click.option("--kind", type=KIND_CHOICE, default=None, help="Restrict lookup to one kind.")
@click.option("--dry-run", is_flag=True, help="Show the changes without writing.")
@click.pass_obj
def update(
    app: AppContext,
    targets: tuple[str, ...],
    assignments: tuple[str, ...],
    removals: tuple[str, ...],
    kind: str | None,
    dry_run: bool,
) -> None:
    """Edit frontmatter fields of one or more records, leaving the rest untouched."""
    edits = [_parse_assignment(a) for a in assignments]
    edits.extend(FieldEdit.unset(field) for field in removals)
    if not edits:
        raise click.UsageError("Nothing to do: pass --set FIELD=VALUE or --unset FIELD.")

    svc = UpdateService(app.vault)
    if len(targets) == 1:
        app.emit(svc.update(targets[0], edits, kind=to_kind(kind), dry_run=dry_run))
    else:
        app.emit(
            svc.batch_update(list(targets), edits, kind=to_kind(kind), dry_run=dry_run)
        )


@click.command(
    name="set-status",
    cls=GtdCommand,
    examples="""\
  gtdctl set-status done "Write report"
  gtdctl set-status in-progress tasks/a.md tasks/b.md
  gtdctl set-status paused "Launch site" --kind project
  gtdctl set-status done "Write report" "Call dentist" --dry-run""",
)
@click.argument("status")
@click.argument("targets", nargs=-1, required=True)
@click.option("--kind", type=KIND_CHOICE, default=None, help="Restrict lookup to one kind.")
@click.option("--dry-run", is_flag=True, help="Show the changes without writing.")
@click.pass_obj
def set_status(
    app: AppContext, status: str, targets: tuple[str, ...], kind: str | None, dry_run: bool
) -> None:
    """Set STATUS on each target; completed-at follows the status for tasks."""
    app.emit(
        UpdateService(app.vault).set_status(
            list(targets), status, kind=to_kind(kind), dry_run=dry_run
        )
    )


@click.command(
    name="append-body",
    cls=GtdCommand,
    examples="""\
  gtdctl append-body "Write report" "Sent draft to Sam"
  gtdctl append-body "Launch site" "Kickoff done" --kind project
  gtdctl append-body tasks/write-report.md "Blocked on data" --dry-run""",
)
@click.argument("target")
@click.argument("text")
@click.option("--kind", type=KIND_CHOICE, default=None, help="Restrict lookup to one kind.")
@click.option("--dry-run", is_flag=True, help="Show the note without writing.")
@click.pass_obj
def append_body(app: AppContext, target: str, text: str, kind: str | None, dry_run: bool) -> None:
    """Append TEXT, stamped with today's date, to the end of a record's body."""
    app.emit(
        UpdateService(app.vault).append_body(target, text, kind=to_kind(kind), dry_run=dry_run)
    )
