"""Relationship index: scan once, answer relationship queries many times.

Records are stored in flat per-kind tuples and every relationship is kept
as integer positions into those tuples (an arena plus index maps), so no
record ever holds a reference to another. The index is immutable after
construction.

Lookup tables:

- title → positions, per kind (lowercased; duplicates keep every position)
- file stem → positions, per kind (fallback for wikilinks naming a file)
- absolute path → position, per kind (identity and path references)

Adjacency:

- project position → task positions
- area position → directly assigned task positions
- area position → project positions

A reference that resolves to nothing is recorded as a warning string and
the record is kept. Nothing here raises for bad data.
"""

from __future__ import annotations

import logging
import os
from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path

from gtdctl.config.models import ScanConfig
from gtdctl.domain.content import AreaRecord, ProjectRecord, Record, TaskRecord
from gtdctl.domain.links import ReferenceStyle, parse_reference
from gtdctl.domain.types import RecordKind
from gtdctl.infrastructure.scanner import ScanFailure, scan_directory

logger = logging.getLogger(__name__)


def _path_key(path: Path | str) -> str:
    return os.path.normcase(os.path.abspath(path))


class RelationshipIndex:
    """In-memory relationship index over one snapshot of the vault.

    Build with :meth:`build` (scans the directories) or construct directly
    from already-parsed record lists.
    """

    def __init__(
        self,
        tasks: Sequence[TaskRecord],
        projects: Sequence[ProjectRecord],
        areas: Sequence[AreaRecord],
        *,
        directories: Mapping[RecordKind, Path] | None = None,
        scan_warnings: Iterable[str] = (),
        scan_failures: Iterable[ScanFailure] = (),
    ) -> None:
        self._records: dict[RecordKind, tuple[Record, ...]] = {
            RecordKind.TASK: tuple(tasks),
            RecordKind.PROJECT: tuple(projects),
            RecordKind.AREA: tuple(areas),
        }
        self._directories: dict[RecordKind, Path] = dict(directories or {})
        self._scan_warnings: list[str] = list(scan_warnings)
        self._scan_failures: list[ScanFailure] = list(scan_failures)

        self._by_title: dict[RecordKind, dict[str, list[int]]] = {}
        self._by_stem: dict[RecordKind, dict[str, list[int]]] = {}
        self._by_path: dict[RecordKind, dict[str, int]] = {}
        for kind, records in self._records.items():
            titles: dict[str, list[int]] = defaultdict(list)
            stems: dict[str, list[int]] = defaultdict(list)
            paths: dict[str, int] = {}
            for pos, record in enumerate(records):
                titles[record.title.lower()].append(pos)
                stems[record.path.stem.lower()].append(pos)
                paths[_path_key(record.path)] = pos
            self._by_title[kind] = dict(titles)
            self._by_stem[kind] = dict(stems)
            self._by_path[kind] = paths

        self._tasks_by_project: dict[int, list[int]] = defaultdict(list)
        self._tasks_by_area: dict[int, list[int]] = defaultdict(list)
        self._projects_by_area: dict[int, list[int]] = defaultdict(list)
        self._task_project: dict[int, int] = {}
        self._task_area: dict[int, int] = {}
        self._project_area: dict[int, int] = {}
        self._record_warnings: dict[tuple[RecordKind, int], list[str]] = defaultdict(list)

        self._link_projects()
        self._link_tasks()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def build(
        cls,
        directories: Mapping[RecordKind, Path],
        *,
        config: ScanConfig | None = None,
        include_archived: bool = False,
    ) -> RelationshipIndex:
        """Scan the three record directories and link them.

        Never fails because of an individual file: unparsable files become
        warnings and are left out.
        """
        scans = {
            kind: scan_directory(
                kind, directories[kind], config=config, include_archived=include_archived
            )
            for kind in RecordKind
        }
        warnings = [w for kind in RecordKind for w in scans[kind].warnings]
        failures = [f for kind in RecordKind for f in scans[kind].failures]
        index = cls(
            [r for r in scans[RecordKind.TASK].records if isinstance(r, TaskRecord)],
            [r for r in scans[RecordKind.PROJECT].records if isinstance(r, ProjectRecord)],
            [r for r in scans[RecordKind.AREA].records if isinstance(r, AreaRecord)],
            directories=directories,
            scan_warnings=warnings,
            scan_failures=failures,
        )
        logger.debug(
            "Index built: %d tasks, %d projects, %d areas, %d warnings",
            len(index.tasks),
            len(index.projects),
            len(index.areas),
            len(index.warnings),
        )
        return index

    def _resolve(self, kind: RecordKind, raw: str, source: Record) -> tuple[int | None, str]:
        """Resolve reference *raw* on *source* to a position of *kind*.

        Returns ``(position, "")`` or ``(None, reason)``; duplicate matches
        resolve to the first and the reason carries the duplicate warning.
        """
        ref = parse_reference(raw)
        if ref.name is not None:
            key = ref.name.lower()
            hits = self._by_title[kind].get(key)
            if not hits and ref.style == ReferenceStyle.WIKILINK:
                hits = self._by_stem[kind].get(key)
            if not hits:
                return None, "unknown"
            if len(hits) > 1:
                first = self._records[kind][hits[0]]
                return hits[0], (
                    f"{source.kind.title()} '{source.title}' references {kind} '{ref.name}' "
                    f"which matches {len(hits)} {kind.plural}; using {first.path}"
                )
            return hits[0], ""

        if ref.is_path:
            for candidate in self._path_candidates(kind, ref.target, source):
                pos = self._by_path[kind].get(_path_key(candidate))
                if pos is not None:
                    return pos, ""
            basename = ref.target.rsplit("/", 1)[-1].lower()
            for pos, record in enumerate(self._records[kind]):
                if record.path.name.lower() == basename:
                    return pos, ""
        return None, "unknown"

    def _path_candidates(self, kind: RecordKind, target: str, source: Record) -> list[Path]:
        candidates = [source.path.parent / target]
        directory = self._directories.get(kind)
        if directory is not None:
            candidates.append(directory / target)
            candidates.append(directory.parent / target)
        return candidates

    def _link(
        self,
        kind: RecordKind,
        source_kind: RecordKind,
        source_pos: int,
        raw: str,
    ) -> int | None:
        source = self._records[source_kind][source_pos]
        pos, reason = self._resolve(kind, raw, source)
        if pos is None:
            label = parse_reference(raw).name or raw.strip()
            self._warn(
                source_kind,
                source_pos,
                f"{source_kind.title()} '{source.title}' references unknown {kind} '{label}'",
            )
        elif reason:
            self._warn(source_kind, source_pos, reason)
        return pos

    def _warn(self, kind: RecordKind, pos: int, message: str) -> None:
        logger.debug(message)
        self._record_warnings[(kind, pos)].append(message)

    def _link_projects(self) -> None:
        for pos, project in enumerate(self._records[RecordKind.PROJECT]):
            raw = getattr(project, "area", None)
            if not raw or not str(raw).strip():
                continue
            area_pos = self._link(RecordKind.AREA, RecordKind.PROJECT, pos, raw)
            if area_pos is not None:
                self._project_area[pos] = area_pos
                self._projects_by_area[area_pos].append(pos)

    def _link_tasks(self) -> None:
        for pos, task in enumerate(self._records[RecordKind.TASK]):
            project_raw = getattr(task, "project", None)
            if project_raw and project_raw.strip():
                project_pos = self._link(RecordKind.PROJECT, RecordKind.TASK, pos, project_raw)
                if project_pos is not None:
                    self._task_project[pos] = project_pos
                    self._tasks_by_project[project_pos].append(pos)

            area_raw = getattr(task, "area", None)
            if area_raw and area_raw.strip():
                area_pos = self._link(RecordKind.AREA, RecordKind.TASK, pos, area_raw)
                if area_pos is not None:
                    self._task_area[pos] = area_pos
                    self._tasks_by_area[area_pos].append(pos)

    # ------------------------------------------------------------------
    # Record access
    # ------------------------------------------------------------------

    @property
    def tasks(self) -> tuple[TaskRecord, ...]:
        return self._records[RecordKind.TASK]  # type: ignore[return-value]

    @property
    def projects(self) -> tuple[ProjectRecord, ...]:
        return self._records[RecordKind.PROJECT]  # type: ignore[return-value]

    @property
    def areas(self) -> tuple[AreaRecord, ...]:
        return self._records[RecordKind.AREA]  # type: ignore[return-value]

    def records(self, kind: RecordKind) -> tuple[Record, ...]:
        return self._records[kind]

    @property
    def scan_failures(self) -> list[ScanFailure]:
        return list(self._scan_failures)

    @property
    def scan_warnings(self) -> list[str]:
        """Skipped-file and scan-limit warnings."""
        return list(self._scan_warnings)

    @property
    def warnings(self) -> list[str]:
        """Scan warnings followed by every reference warning."""
        out = list(self._scan_warnings)
        for kind in RecordKind:
            for pos in range(len(self._records[kind])):
                out.extend(self._record_warnings.get((kind, pos), ()))
        return out

    def warnings_for(self, *records: Record) -> list[str]:
        """Reference warnings raised while linking *records*, de-duplicated."""
        out: list[str] = []
        for record in records:
            pos = self._position(record)
            if pos is None:
                continue
            for message in self._record_warnings.get((record.kind, pos), ()):
                if message not in out:
                    out.append(message)
        return out

    def _position(self, record: Record) -> int | None:
        return self._by_path[record.kind].get(_path_key(record.path))

    def find_by_path(self, path: Path | str) -> Record | None:
        """Return the record stored at *path*, whatever its kind."""
        key = _path_key(path)
        for kind in RecordKind:
            pos = self._by_path[kind].get(key)
            if pos is not None:
                return self._records[kind][pos]
        return None

    # ------------------------------------------------------------------
    # Hybrid title lookup
    # ------------------------------------------------------------------

    def find_by_title(self, kind: RecordKind, query: str) -> list[Record]:
        """Hybrid match: exact case-insensitive title first, substring second.

        The substring scan only runs when there is no exact match. Every
        match is returned; choosing between them is the caller's job.
        """
        needle = query.strip().lower()
        if not needle:
            return []
        records = self._records[kind]
        exact = self._by_title[kind].get(needle)
        if exact:
            return [records[pos] for pos in exact]
        return [record for record in records if needle in record.title.lower()]

    def find_tasks_by_title(self, query: str) -> list[TaskRecord]:
        return self.find_by_title(RecordKind.TASK, query)  # type: ignore[return-value]

    def find_projects_by_title(self, query: str) -> list[ProjectRecord]:
        return self.find_by_title(RecordKind.PROJECT, query)  # type: ignore[return-value]

    def find_areas_by_title(self, query: str) -> list[AreaRecord]:
        return self.find_by_title(RecordKind.AREA, query)  # type: ignore[return-value]

    def duplicate_titles(self, kind: RecordKind) -> dict[str, list[Record]]:
        """Titles (as first seen) shared by more than one record of *kind*."""
        records = self._records[kind]
        return {
            records[positions[0]].title: [records[p] for p in positions]
            for positions in self._by_title[kind].values()
            if len(positions) > 1
        }

    # ------------------------------------------------------------------
    # Relationship queries
    # ------------------------------------------------------------------

    def tasks_in_project(self, project: ProjectRecord) -> list[TaskRecord]:
        pos = self._position(project)
        if pos is None:
            return []
        return [self.tasks[t] for t in self._tasks_by_project.get(pos, ())]

    def projects_in_area(self, area: AreaRecord) -> list[ProjectRecord]:
        pos = self._position(area)
        if pos is None:
            return []
        return [self.projects[p] for p in self._projects_by_area.get(pos, ())]

    def tasks_directly_in_area(self, area: AreaRecord) -> list[TaskRecord]:
        pos = self._position(area)
        if pos is None:
            return []
        return [self.tasks[t] for t in self._tasks_by_area.get(pos, ())]

    def tasks_in_area(self, area: AreaRecord) -> list[TaskRecord]:
        """Tasks assigned to *area* directly or through one of its projects.

        Each task appears once even when it matches both ways. Direct tasks
        come first, then project tasks in project order.
        """
        pos = self._position(area)
        if pos is None:
            return []
        seen: set[int] = set()
        ordered: list[int] = []
        for task_pos in self._tasks_by_area.get(pos, ()):
            if task_pos not in seen:
                seen.add(task_pos)
                ordered.append(task_pos)
        for project_pos in self._projects_by_area.get(pos, ()):
            for task_pos in self._tasks_by_project.get(project_pos, ()):
                if task_pos not in seen:
                    seen.add(task_pos)
                    ordered.append(task_pos)
        return [self.tasks[t] for t in ordered]

    def project_for_task(self, task: TaskRecord) -> ProjectRecord | None:
        pos = self._position(task)
        if pos is None or pos not in self._task_project:
            return None
        return self.projects[self._task_project[pos]]

    def area_for_project(self, project: ProjectRecord) -> AreaRecord | None:
        pos = self._position(project)
        if pos is None or pos not in self._project_area:
            return None
        return self.areas[self._project_area[pos]]

    def area_for_task(self, task: TaskRecord) -> AreaRecord | None:
        """The task's own area, else its project's area, else ``None``."""
        pos = self._position(task)
        if pos is None:
            return None
        if pos in self._task_area:
            return self.areas[self._task_area[pos]]
        project_pos = self._task_project.get(pos)
        if project_pos is not None and project_pos in self._project_area:
            return self.areas[self._project_area[project_pos]]
        return None
