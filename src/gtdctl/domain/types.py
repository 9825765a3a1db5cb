"""Record kinds and the vault directory each one lives in."""

from __future__ import annotations

from enum import StrEnum


class RecordKind(StrEnum):
    """The three record kinds stored in a vault."""

    TASK = "task"
    PROJECT = "project"
    AREA = "area"

    @property
    def plural(self) -> str:
        return f"{self.value}s"


# Subdirectory (beneath each kind directory) holding archived records.
ARCHIVE_DIRNAME = "archive"
