"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, gtdctl.toml only contains
overrides. A vault with the stock ``tasks/``, ``projects/`` and ``areas/``
layout needs no config file at all.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from gtdctl.domain.lifecycle import AreaStatus, TaskStatus
from gtdctl.domain.types import RecordKind

# --- gtdctl.toml sections ---


class VaultConfig(BaseModel):
    """[vault] section.

    Directory values are relative to the vault root unless absolute.
    """

    model_config = {"frozen": True}

    tasks_dir: str = "tasks"
    projects_dir: str = "projects"
    areas_dir: str = "areas"

    def directory_for(self, kind: RecordKind, root: Path) -> Path:
        """Resolve the directory holding records of *kind*."""
        raw = {
            RecordKind.TASK: self.tasks_dir,
            RecordKind.PROJECT: self.projects_dir,
            RecordKind.AREA: self.areas_dir,
        }[kind]
        path = Path(raw).expanduser()
        return path if path.is_absolute() else root / path


class ScanConfig(BaseModel):
    """[scan] section. Bounds applied to every directory scan."""

    model_config = {"frozen": True}

    max_workers: int = Field(default=8, ge=1)
    max_files: int = Field(default=10_000, ge=1)
    max_file_bytes: int = Field(default=1024 * 1024, ge=1)
    max_frontmatter_bytes: int = Field(default=64 * 1024, ge=1)
    max_total_bytes: int = Field(default=256 * 1024 * 1024, ge=1)


class DefaultsConfig(BaseModel):
    """[defaults] section. Values applied to newly created records."""

    model_config = {"frozen": True}

    task_status: str = TaskStatus.INBOX.value
    area_status: str = AreaStatus.ACTIVE.value

    @field_validator("task_status")
    @classmethod
    def _known_task_status(cls, value: str) -> str:
        TaskStatus(value)
        return value

    @field_validator("area_status")
    @classmethod
    def _known_area_status(cls, value: str) -> str:
        AreaStatus(value)
        return value


class GtdConfig(BaseModel):
    """Top-level config model mirroring gtdctl.toml."""

    model_config = {"frozen": True}

    vault: VaultConfig = Field(default_factory=VaultConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
