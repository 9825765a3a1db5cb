"""Shared pytest fixtures and test helpers for gtdctl tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from gtdctl.config.settings import GtdSettings
from gtdctl.infrastructure.vault import Vault


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def vault_root(tmp_path: Path) -> Path:
    """Temporary vault directory with the stock layout.

    This is the single source of truth for the vault directory layout.
    All vault-related fixtures (vault, _isolated_vault) build on this.
    """
    (tmp_path / "tasks").mkdir()
    (tmp_path / "projects").mkdir()
    (tmp_path / "areas").mkdir()
    return tmp_path


@pytest.fixture
def vault(vault_root: Path, monkeypatch: pytest.MonkeyPatch) -> Vault:
    """Vault session over the temporary directory."""
    monkeypatch.delenv("GTDCTL_CONFIG", raising=False)
    settings = GtdSettings.from_cli(vault_root=vault_root)
    return Vault(settings)


@pytest.fixture
def _isolated_vault(vault_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp vault root so the CLI works on an isolated vault.

    Use via ``@pytest.mark.usefixtures("_isolated_vault")`` on command test
    classes. Tests that need the path can also request ``vault_root``.
    """
    monkeypatch.delenv("GTDCTL_CONFIG", raising=False)
    monkeypatch.chdir(vault_root)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def write_record(directory: Path, name: str, frontmatter: str, body: str = "") -> Path:
    """Write ``---\\n{frontmatter}---\\n{body}`` to *directory*/*name*.

    *frontmatter* is raw YAML text and must end with a newline.
    """
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_bytes(f"---\n{frontmatter}---\n{body}".encode())
    return path


def write_task(root: Path, name: str, title: str, status: str = "ready", **fields: str) -> Path:
    """Write a task file; keyword fields use ``_`` for ``-``."""
    lines = [f"title: {title}", f"status: {status}"]
    lines.extend(f"{key.replace('_', '-')}: {value}" for key, value in fields.items())
    return write_record(root / "tasks", name, "\n".join(lines) + "\n")


def write_project(root: Path, name: str, title: str, **fields: str) -> Path:
    lines = [f"title: {title}"]
    lines.extend(f"{key.replace('_', '-')}: {value}" for key, value in fields.items())
    return write_record(root / "projects", name, "\n".join(lines) + "\n")


def write_area(root: Path, name: str, title: str, **fields: str) -> Path:
    lines = [f"title: {title}"]
    lines.extend(f"{key.replace('_', '-')}: {value}" for key, value in fields.items())
    return write_record(root / "areas", name, "\n".join(lines) + "\n")


def seed_vault(root: Path) -> dict[str, Path]:
    """A small vault: Work area, Q1 project, tasks A (via project) and B (direct)."""
    return {
        "work": write_area(root, "work.md", "Work", status="active"),
        "home": write_area(root, "home.md", "Home"),
        "q1": write_project(root, "q1.md", "Q1", area='"[[Work]]"', status="in-progress"),
        "a": write_task(root, "a.md", "A", projects='["[[Q1]]"]', due="2025-01-15"),
        "b": write_task(root, "b.md", "B", area='"[[Work]]"'),
        "c": write_task(root, "c.md", "C", area='"[[Home]]"', status="inbox"),
    }


def create_task(vault: Vault, title: str, **kwargs: Any) -> dict[str, Any]:
    """Create a task via CreateService, asserting success."""
    from gtdctl.services.create import CreateService

    result = CreateService(vault).create_task(title, **kwargs)
    assert result.ok, result.error
    return result.data


def create_project(vault: Vault, title: str, **kwargs: Any) -> dict[str, Any]:
    """Create a project via CreateService, asserting success."""
    from gtdctl.services.create import CreateService

    result = CreateService(vault).create_project(title, **kwargs)
    assert result.ok, result.error
    return result.data


def create_area(vault: Vault, title: str, **kwargs: Any) -> dict[str, Any]:
    """Create an area via CreateService, asserting success."""
    from gtdctl.services.create import CreateService

    result = CreateService(vault).create_area(title, **kwargs)
    assert result.ok, result.error
    return result.data
