"""Status enumerations per record kind.

Each kind has a fixed vocabulary. Values are kebab-case exactly as they
appear in frontmatter (``status: in-progress``).
"""

from __future__ import annotations

from enum import StrEnum

from gtdctl.domain.types import RecordKind


class TaskStatus(StrEnum):
    """Status of a task."""

    INBOX = "inbox"
    ICEBOX = "icebox"
    READY = "ready"
    IN_PROGRESS = "in-progress"
    BLOCKED = "blocked"
    DROPPED = "dropped"
    DONE = "done"


class ProjectStatus(StrEnum):
    """Status of a project."""

    PLANNING = "planning"
    READY = "ready"
    BLOCKED = "blocked"
    IN_PROGRESS = "in-progress"
    PAUSED = "paused"
    DONE = "done"


class AreaStatus(StrEnum):
    """Status of an area."""

    ACTIVE = "active"
    ARCHIVED = "archived"


STATUS_ENUMS: dict[RecordKind, type[StrEnum]] = {
    RecordKind.TASK: TaskStatus,
    RecordKind.PROJECT: ProjectStatus,
    RecordKind.AREA: AreaStatus,
}

# Statuses that close a record. Entering one stamps ``completed-at`` on tasks.
TERMINAL_STATUSES: dict[RecordKind, frozenset[str]] = {
    RecordKind.TASK: frozenset({TaskStatus.DONE, TaskStatus.DROPPED}),
    RecordKind.PROJECT: frozenset({ProjectStatus.DONE}),
    RecordKind.AREA: frozenset({AreaStatus.ARCHIVED}),
}


def allowed_statuses(kind: RecordKind) -> list[str]:
    """Return the status vocabulary for *kind* in declaration order."""
    return [str(member) for member in STATUS_ENUMS[kind]]


def normalize_status(value: str) -> str:
    """Fold a user-typed status into the kebab-case frontmatter form.

    ``InProgress``, ``in_progress`` and ``In-Progress`` all become
    ``in-progress``.
    """
    text = value.strip().replace("_", "-").replace(" ", "-")
    out: list[str] = []
    for i, ch in enumerate(text):
        if ch.isupper() and i > 0 and text[i - 1].islower():
            out.append("-")
        out.append(ch.lower())
    return "".join(out)


def is_valid_status(kind: RecordKind, value: str) -> bool:
    """Check whether *value* belongs to the status vocabulary of *kind*."""
    return value in allowed_statuses(kind)


def is_terminal(kind: RecordKind, status: str | None) -> bool:
    """Check whether *status* closes a record of *kind*."""
    return status is not None and status in TERMINAL_STATUSES[kind]
