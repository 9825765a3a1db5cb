"""Tests for status vocabularies."""

from __future__ import annotations

import pytest

from gtdctl.domain.lifecycle import (
    allowed_statuses,
    is_terminal,
    is_valid_status,
    normalize_status,
)
from gtdctl.domain.types import RecordKind


class TestNormalizeStatus:
    @pytest.mark.parametrize("raw", ["in-progress", "in_progress", "InProgress", " In Progress "])
    def test_variants_fold_to_kebab(self, raw: str) -> None:
        assert normalize_status(raw) == "in-progress"

    def test_plain_word(self) -> None:
        assert normalize_status("DONE") == "done"


class TestVocabulary:
    def test_task_statuses(self) -> None:
        assert allowed_statuses(RecordKind.TASK) == [
            "inbox",
            "icebox",
            "ready",
            "in-progress",
            "blocked",
            "dropped",
            "done",
        ]

    def test_project_and_area(self) -> None:
        assert "paused" in allowed_statuses(RecordKind.PROJECT)
        assert allowed_statuses(RecordKind.AREA) == ["active", "archived"]

    def test_validity_is_per_kind(self) -> None:
        assert is_valid_status(RecordKind.TASK, "inbox")
        assert not is_valid_status(RecordKind.PROJECT, "inbox")

    def test_terminal(self) -> None:
        assert is_terminal(RecordKind.TASK, "done")
        assert is_terminal(RecordKind.TASK, "dropped")
        assert not is_terminal(RecordKind.TASK, "ready")
        assert not is_terminal(RecordKind.TASK, None)
