"""Tests for ContextService: area, project, and task contexts."""

from __future__ import annotations

from pathlib import Path

import pytest

from gtdctl.infrastructure.vault import Vault
from gtdctl.services.context import ContextService
from tests.conftest import seed_vault, write_task


@pytest.fixture
def svc(vault: Vault, vault_root: Path) -> ContextService:
    seed_vault(vault_root)
    return ContextService(vault)


class TestAreaContext:
    def test_projects_and_tasks(self, svc: ContextService) -> None:
        result = svc.area_context("Work")
        assert result.ok
        assert result.data["area"]["title"] == "Work"
        assert [p["title"] for p in result.data["projects"]] == ["Q1"]
        tasks = {t["title"]: t["via"] for t in result.data["tasks"]}
        assert tasks == {"A": "project", "B": "area"}

    def test_tasks_sorted_by_title(self, svc: ContextService) -> None:
        titles = [t["title"] for t in svc.area_context("work").data["tasks"]]
        assert titles == ["A", "B"]

    def test_task_listed_once(self, vault: Vault, vault_root: Path) -> None:
        seed_vault(vault_root)
        write_task(vault_root, "d.md", "D", area='"[[Work]]"', projects='["[[Q1]]"]')
        result = ContextService(vault).area_context("Work")
        titles = [t["title"] for t in result.data["tasks"]]
        assert titles.count("D") == 1
        assert next(t for t in result.data["tasks"] if t["title"] == "D")["via"] == "area"

    def test_area_body_included(self, vault: Vault, vault_root: Path) -> None:
        (vault_root / "areas" / "w.md").write_text("---\ntitle: Work\n---\nStandards\n")
        result = ContextService(vault).area_context("Work")
        assert result.data["area"]["body"] == "Standards\n"

    def test_empty_area(self, svc: ContextService) -> None:
        result = svc.area_context("Home")
        assert result.ok
        assert result.data["projects"] == []
        assert [t["title"] for t in result.data["tasks"]] == ["C"]

    def test_unknown_area(self, svc: ContextService) -> None:
        result = svc.area_context("Garden")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"

    def test_reference_warnings_in_subgraph(self, vault: Vault, vault_root: Path) -> None:
        seed_vault(vault_root)
        write_task(vault_root, "x.md", "X", area='"[[Work]]"', projects='["[[Gone]]"]')
        result = ContextService(vault).area_context("Work")
        assert "Task 'X' references unknown project 'Gone'" in result.warnings


class TestProjectContext:
    def test_area_and_tasks(self, svc: ContextService) -> None:
        result = svc.project_context("Q1")
        assert result.ok
        assert result.data["project"]["title"] == "Q1"
        assert result.data["area"]["title"] == "Work"
        assert [t["title"] for t in result.data["tasks"]] == ["A"]

    def test_project_without_area(self, vault: Vault, vault_root: Path) -> None:
        (vault_root / "projects" / "solo.md").write_text("---\ntitle: Solo\n---\n")
        result = ContextService(vault).project_context("Solo")
        assert result.ok
        assert result.data["area"] is None
        assert result.data["tasks"] == []


class TestTaskContext:
    def test_area_through_project(self, svc: ContextService) -> None:
        result = svc.task_context("A")
        assert result.ok
        assert result.data["project"]["title"] == "Q1"
        assert result.data["area"]["title"] == "Work"

    def test_direct_area(self, svc: ContextService) -> None:
        result = svc.task_context("B")
        assert result.data["project"] is None
        assert result.data["area"]["title"] == "Work"

    def test_ambiguous_task(self, vault: Vault, vault_root: Path) -> None:
        write_task(vault_root, "1.md", "Call mom")
        write_task(vault_root, "2.md", "Call dad")
        result = ContextService(vault).task_context("call")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "AMBIGUOUS"
