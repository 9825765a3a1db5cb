"""Command: vault integrity report."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from gtdctl.commands._base import GtdCommand

if TYPE_CHECKING:
    from gtdctl.commands._context import AppContext


@click.command(
    cls=GtdCommand,
    examples="""\
  gtdctl check
  gtdctl -v check
  gtdctl --json check""",
)
@click.pass_obj
def check(app: AppContext) -> None:
    """Report unreadable files, broken references, and duplicate titles."""
    from gtdctl.services.check import CheckService

    app.emit(CheckService(app.vault).check())
