"""Subcommand modules for gtdctl.

Provides register_commands() which uses deferred imports to keep
``gtdctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group."""
    # --- Groups ---
    from gtdctl.commands.context import context
    from gtdctl.commands.create import new
    from gtdctl.commands.query import list_group

    cli.add_command(list_group)
    cli.add_command(context)
    cli.add_command(new)

    # --- Standalone commands ---
    from gtdctl.commands.archive import archive
    from gtdctl.commands.check import check
    from gtdctl.commands.query import find, search, show, today
    from gtdctl.commands.update import append_body, set_status, update

    cli.add_command(show)
    cli.add_command(find)
    cli.add_command(search)
    cli.add_command(today)
    cli.add_command(set_status)
    cli.add_command(update)
    cli.add_command(append_body)
    cli.add_command(archive)
    cli.add_command(check)
