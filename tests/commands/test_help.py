"""Parametrized help tests for all CLI commands."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from gtdctl.cli import cli

# (CLI args, expected keywords in output)
HELP_COMMANDS: list[tuple[list[str], list[str]]] = [
    # -- root --
    (["--help"], ["--json", "--quiet", "--verbose", "--vault", "--config"]),
    # -- new group --
    (["new", "--help"], ["task", "project", "area"]),
    (["new", "task", "--help"], ["TITLE", "--due", "--scheduled", "--defer-until", "--project"]),
    (["new", "project", "--help"], ["--area", "--start-date", "--end-date", "--description"]),
    (["new", "area", "--help"], ["--type", "--description"]),
    # -- list group --
    (["list", "--help"], ["tasks", "projects", "areas"]),
    (["list", "tasks", "--help"], ["--status", "--due", "--overdue", "--completed-after"]),
    (["list", "tasks", "--help"], ["--include-closed", "--include-icebox", "--include-deferred"]),
    (["list", "projects", "--help"], ["--area", "--include-done", "--sort"]),
    (["list", "areas", "--help"], ["--include-archived", "--only-archived"]),
    # -- context group --
    (["context", "--help"], ["area", "project", "task"]),
    (["context", "area", "--help"], ["NAME"]),
    # -- standalone --
    (["show", "--help"], ["QUERY_TEXT", "--kind", "--include-archived"]),
    (["find", "--help"], ["KIND", "TITLE"]),
    (["search", "--help"], ["TEXT", "--kind", "--limit"]),
    (["today", "--help"], ["--on"]),
    (["update", "--help"], ["TARGETS", "--set", "--unset", "--kind", "--dry-run"]),
    (["set-status", "--help"], ["STATUS", "TARGETS", "--dry-run"]),
    (["append-body", "--help"], ["TARGET", "TEXT", "--kind", "--dry-run"]),
    (["archive", "--help"], ["TARGETS", "--kind", "--dry-run"]),
    (["check", "--help"], ["duplicate titles"]),
]


def _help_id(item: tuple[list[str], list[str]]) -> str:
    args, _ = item
    return "_".join(a for a in args if a != "--help") or "root"


@pytest.mark.parametrize(
    "args,expected_keywords",
    HELP_COMMANDS,
    ids=[_help_id(item) for item in HELP_COMMANDS],
)
def test_help_output(cli_runner: CliRunner, args: list[str], expected_keywords: list[str]) -> None:
    result = cli_runner.invoke(cli, args)
    assert result.exit_code == 0
    for kw in expected_keywords:
        assert kw in result.output, f"Expected '{kw}' in help output for {args}"
