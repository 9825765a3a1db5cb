"""Tests for the stateless query engine."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from gtdctl.domain.content import TaskRecord
from gtdctl.infrastructure.vault import Vault
from gtdctl.services.filtering import (
    RecordFilter,
    apply_limit,
    area_predicate,
    date_window,
    parse_status_list,
    project_predicate,
    run_query,
    sort_records,
    task_predicate,
    today_reasons,
)
from tests.conftest import seed_vault, write_area, write_project, write_record, write_task

DAY = date(2025, 1, 15)  # a Wednesday


def _titles(records: list) -> list[str]:
    return [r.title for r in records]


def _tasks(vault: Vault, flt: RecordFilter, *, archived: bool = False) -> list[str]:
    index = vault.get_index(include_archived=archived)
    return sorted(_titles(run_query(index.tasks, task_predicate(flt, index=index))))


class TestParseStatusList:
    def test_comma_separated(self) -> None:
        assert parse_status_list("ready, in-progress") == ("ready", "in-progress")

    def test_multiple_values_and_normalization(self) -> None:
        assert parse_status_list(["In Progress", "blocked,"]) == ("in-progress", "blocked")

    def test_none(self) -> None:
        assert parse_status_list(None) == ()


class TestDateWindow:
    def test_today(self) -> None:
        assert date_window("today", DAY) == (DAY, DAY)

    def test_tomorrow(self) -> None:
        assert date_window("Tomorrow", DAY) == (date(2025, 1, 16), date(2025, 1, 16))

    def test_this_week_runs_through_sunday(self) -> None:
        assert date_window("this-week", DAY) == (DAY, date(2025, 1, 19))

    def test_explicit_date(self) -> None:
        assert date_window("2025-03-01", DAY) == (date(2025, 3, 1), date(2025, 3, 1))

    def test_unknown_keyword(self) -> None:
        with pytest.raises(ValueError):
            date_window("next-month", DAY)


class TestTaskDefaults:
    @pytest.fixture
    def vault_with_statuses(self, vault: Vault, vault_root: Path) -> Vault:
        for status in ("inbox", "ready", "in-progress", "blocked", "icebox", "done", "dropped"):
            write_task(vault_root, f"{status}.md", status.title(), status=status)
        return vault

    def test_hides_closed_and_icebox(self, vault_with_statuses: Vault) -> None:
        titles = _tasks(vault_with_statuses, RecordFilter(on=DAY))
        assert titles == ["Blocked", "In-Progress", "Inbox", "Ready"]

    def test_explicit_status_lifts_exclusions(self, vault_with_statuses: Vault) -> None:
        flt = RecordFilter(statuses=("done", "icebox"), on=DAY)
        assert _tasks(vault_with_statuses, flt) == ["Done", "Icebox"]

    def test_include_closed(self, vault_with_statuses: Vault) -> None:
        titles = _tasks(vault_with_statuses, RecordFilter(include_closed=True, on=DAY))
        assert "Done" in titles
        assert "Dropped" in titles
        assert "Icebox" not in titles

    def test_include_done_only(self, vault_with_statuses: Vault) -> None:
        titles = _tasks(vault_with_statuses, RecordFilter(include_done=True, on=DAY))
        assert "Done" in titles
        assert "Dropped" not in titles

    def test_deferred_hidden_until_date(self, vault: Vault, vault_root: Path) -> None:
        write_task(vault_root, "later.md", "Later", defer_until="2025-02-01")
        write_task(vault_root, "now.md", "Now", defer_until="2025-01-15")
        assert _tasks(vault, RecordFilter(on=DAY)) == ["Now"]
        assert _tasks(vault, RecordFilter(include_deferred=True, on=DAY)) == ["Later", "Now"]


class TestTaskCriteria:
    @pytest.fixture
    def seeded(self, vault: Vault, vault_root: Path) -> Vault:
        seed_vault(vault_root)
        return vault

    def test_status_or(self, seeded: Vault) -> None:
        flt = RecordFilter(statuses=("ready", "inbox"), on=DAY)
        assert _tasks(seeded, flt) == ["A", "B", "C"]

    def test_project_substring(self, seeded: Vault) -> None:
        assert _tasks(seeded, RecordFilter(project="q1", on=DAY)) == ["A"]

    def test_area_matches_direct_and_via_project(self, seeded: Vault) -> None:
        assert _tasks(seeded, RecordFilter(area="work", on=DAY)) == ["A", "B"]

    def test_area_without_index_uses_own_reference(self, seeded: Vault) -> None:
        tasks = seeded.index.tasks
        selected = run_query(tasks, task_predicate(RecordFilter(area="Work", on=DAY)))
        assert _titles(selected) == ["B"]

    def test_due_today(self, seeded: Vault) -> None:
        assert _tasks(seeded, RecordFilter(due="today", on=DAY)) == ["A"]

    def test_due_this_week_excludes_undated(self, seeded: Vault) -> None:
        assert _tasks(seeded, RecordFilter(due="this-week", on=DAY)) == ["A"]

    def test_due_tomorrow(self, seeded: Vault) -> None:
        assert _tasks(seeded, RecordFilter(due="tomorrow", on=DAY)) == []

    def test_overdue(self, seeded: Vault) -> None:
        assert _tasks(seeded, RecordFilter(overdue=True, on=DAY)) == []
        assert _tasks(seeded, RecordFilter(overdue=True, on=date(2025, 1, 16))) == ["A"]

    def test_overdue_ignores_closed(self, vault: Vault, vault_root: Path) -> None:
        write_task(vault_root, "x.md", "X", status="done", due="2024-01-01")
        flt = RecordFilter(overdue=True, include_closed=True, on=DAY)
        assert _tasks(vault, flt) == []

    def test_scheduled(self, vault: Vault, vault_root: Path) -> None:
        write_task(vault_root, "s.md", "S", scheduled="2025-01-17T09:00")
        assert _tasks(vault, RecordFilter(scheduled="this-week", on=DAY)) == ["S"]
        assert _tasks(vault, RecordFilter(scheduled="today", on=DAY)) == []

    def test_text_query(self, vault: Vault, vault_root: Path) -> None:
        write_record(vault_root / "tasks", "t.md", "title: Call\nstatus: ready\n", "Ask about the INVOICE\n")
        write_task(vault_root, "u.md", "Other")
        assert _tasks(vault, RecordFilter(query="invoice", on=DAY)) == ["Call"]

    def test_invalid_due_keyword_raises(self, seeded: Vault) -> None:
        with pytest.raises(ValueError):
            task_predicate(RecordFilter(due="someday", on=DAY))


class TestCompletedBounds:
    @pytest.fixture
    def completed(self, vault: Vault, vault_root: Path) -> Vault:
        write_task(vault_root, "d1.md", "D1", status="done", completed_at="2025-01-10T08:00")
        write_task(vault_root, "d2.md", "D2", status="done", completed_at="2025-01-20")
        write_task(vault_root, "open.md", "Open")
        return vault

    def test_bounds_are_inclusive(self, completed: Vault) -> None:
        flt = RecordFilter(completed_after="2025-01-10", completed_before="2025-01-20", on=DAY)
        assert _tasks(completed, flt) == ["D1", "D2"]

    def test_after_only(self, completed: Vault) -> None:
        assert _tasks(completed, RecordFilter(completed_after="2025-01-11", on=DAY)) == ["D2"]

    def test_before_only(self, completed: Vault) -> None:
        assert _tasks(completed, RecordFilter(completed_before="2025-01-19", on=DAY)) == ["D1"]

    def test_bad_bound_raises(self) -> None:
        with pytest.raises(ValueError):
            task_predicate(RecordFilter(completed_after="last week", on=DAY))


class TestArchiveSelection:
    @pytest.fixture
    def archived(self, vault: Vault, vault_root: Path) -> Vault:
        write_task(vault_root, "live.md", "Live")
        write_record(vault_root / "tasks" / "archive", "old.md", "title: Old\nstatus: ready\n")
        return vault

    def test_excluded_by_default(self, archived: Vault) -> None:
        assert _tasks(archived, RecordFilter(on=DAY), archived=True) == ["Live"]

    def test_included(self, archived: Vault) -> None:
        flt = RecordFilter(include_archived=True, on=DAY)
        assert _tasks(archived, flt, archived=True) == ["Live", "Old"]

    def test_only_archived(self, archived: Vault) -> None:
        flt = RecordFilter(only_archived=True, on=DAY)
        assert _tasks(archived, flt, archived=True) == ["Old"]


class TestProjectAndAreaPredicates:
    def test_project_done_hidden(self, vault: Vault, vault_root: Path) -> None:
        write_project(vault_root, "a.md", "Alpha", status="done")
        write_project(vault_root, "b.md", "Beta", status="planning")
        index = vault.index
        assert _titles(run_query(index.projects, project_predicate(RecordFilter()))) == ["Beta"]
        flt = RecordFilter(include_done=True)
        assert _titles(run_query(index.projects, project_predicate(flt))) == ["Alpha", "Beta"]

    def test_project_area_filter(self, vault: Vault, vault_root: Path) -> None:
        seed_vault(vault_root)
        write_project(vault_root, "h.md", "House", area='"[[Home]]"')
        index = vault.index
        selected = run_query(index.projects, project_predicate(RecordFilter(area="home"), index=index))
        assert _titles(selected) == ["House"]

    def test_archived_area_status_hidden(self, vault: Vault, vault_root: Path) -> None:
        write_area(vault_root, "a.md", "Old", status="archived")
        write_area(vault_root, "b.md", "Current", status="active")
        index = vault.index
        assert _titles(run_query(index.areas, area_predicate(RecordFilter()))) == ["Current"]
        flt = RecordFilter(statuses=("archived",))
        assert _titles(run_query(index.areas, area_predicate(flt))) == ["Old"]


class TestSortAndLimit:
    @pytest.fixture
    def dated(self, vault: Vault, vault_root: Path) -> list[TaskRecord]:
        write_task(vault_root, "1.md", "Late", due="2025-03-01")
        write_task(vault_root, "2.md", "None")
        write_task(vault_root, "3.md", "Early", due="2025-01-01")
        write_task(vault_root, "4.md", "Timed", due="2025-01-01T10:00")
        return list(vault.index.tasks)

    def test_ascending_nulls_last(self, dated: list[TaskRecord]) -> None:
        assert _titles(sort_records(dated, "due")) == ["Early", "Timed", "Late", "None"]

    def test_descending_nulls_last(self, dated: list[TaskRecord]) -> None:
        assert _titles(sort_records(dated, "due", descending=True))[-1] == "None"
        assert _titles(sort_records(dated, "due", descending=True))[0] == "Late"

    def test_title_sort_is_case_insensitive(self, vault: Vault, vault_root: Path) -> None:
        write_task(vault_root, "x.md", "beta")
        write_task(vault_root, "y.md", "Alpha")
        assert _titles(sort_records(list(vault.index.tasks), "title")) == ["Alpha", "beta"]

    def test_underscore_field_names(self, dated: list[TaskRecord]) -> None:
        assert _titles(sort_records(dated, "defer_until")) == _titles(dated)

    def test_limit(self, dated: list[TaskRecord]) -> None:
        assert len(apply_limit(dated, 2)) == 2
        assert len(apply_limit(dated, None)) == 4
        assert apply_limit(dated, 0) == []

    def test_run_query_sorts_then_limits(self, dated: list[TaskRecord]) -> None:
        assert _titles(run_query(dated, sort="due", limit=1)) == ["Early"]


class TestTodayReasons:
    def _reasons(self, vault: Vault, vault_root: Path, status: str = "ready", **fields: str) -> list[str]:
        write_task(vault_root, "t.md", "T", status=status, **fields)
        [task] = vault.index.tasks
        return today_reasons(task, DAY)

    def test_in_progress(self, vault: Vault, vault_root: Path) -> None:
        assert self._reasons(vault, vault_root, status="in-progress") == ["in-progress"]

    def test_overdue(self, vault: Vault, vault_root: Path) -> None:
        assert self._reasons(vault, vault_root, due="2025-01-10") == ["overdue"]

    def test_due_today_with_time(self, vault: Vault, vault_root: Path) -> None:
        assert self._reasons(vault, vault_root, due="2025-01-15T17:00") == ["due-today"]

    def test_scheduled_today(self, vault: Vault, vault_root: Path) -> None:
        assert self._reasons(vault, vault_root, scheduled="2025-01-15") == ["scheduled-today"]

    def test_newly_actionable(self, vault: Vault, vault_root: Path) -> None:
        assert self._reasons(vault, vault_root, defer_until="2025-01-15") == ["newly-actionable"]

    def test_several_reasons(self, vault: Vault, vault_root: Path) -> None:
        reasons = self._reasons(
            vault, vault_root, status="in-progress", due="2025-01-01", scheduled="2025-01-15"
        )
        assert reasons == ["in-progress", "overdue", "scheduled-today"]

    @pytest.mark.parametrize(
        "status,fields",
        [
            ("ready", {}),
            ("ready", {"due": "2025-01-16", "scheduled": "2025-01-14"}),
            ("ready", {"defer_until": "2025-01-14"}),
            ("in-progress", {"defer_until": "2025-01-16"}),
            ("done", {"due": "2025-01-15"}),
            ("dropped", {"due": "2025-01-10"}),
            ("icebox", {"scheduled": "2025-01-15"}),
        ],
    )
    def test_not_listed(
        self, vault: Vault, vault_root: Path, status: str, fields: dict[str, str]
    ) -> None:
        assert self._reasons(vault, vault_root, status=status, **fields) == []

    def test_archived_task_not_listed(self, vault: Vault, vault_root: Path) -> None:
        write_record(
            vault_root / "tasks" / "archive", "old.md", "title: Old\nstatus: in-progress\n"
        )
        [task] = vault.get_index(include_archived=True).tasks
        assert today_reasons(task, DAY) == []
