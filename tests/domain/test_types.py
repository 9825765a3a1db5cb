"""Tests for record kinds."""

from __future__ import annotations

from gtdctl.domain.types import RecordKind


class TestRecordKind:
    def test_values(self) -> None:
        assert [k.value for k in RecordKind] == ["task", "project", "area"]

    def test_plural(self) -> None:
        assert RecordKind.PROJECT.plural == "projects"

    def test_is_str(self) -> None:
        assert RecordKind("area") == "area"
