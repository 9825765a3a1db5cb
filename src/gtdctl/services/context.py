"""ContextService: everything under an area, a project, or around a task.

Each context bundles the focal record, its related records, and the
reference warnings gathered for that subgraph while the index was built.
"""

from __future__ import annotations

from gtdctl.domain.content import AreaRecord, ProjectRecord, Record, TaskRecord
from gtdctl.domain.errors import GtdError
from gtdctl.domain.types import RecordKind
from gtdctl.services._helpers import resolve_target, result_from_error, summarize, summarize_all
from gtdctl.services.base import BaseService
from gtdctl.services.filtering import sort_records
from gtdctl.services.result import ServiceResult
from gtdctl.services.telemetry import traced


def _by_title(records: list[Record]) -> list[Record]:
    return sort_records(records, "title")


class ContextService(BaseService):
    """Assembles relationship contexts from the session index."""

    @traced
    def area_context(self, name: str) -> ServiceResult:
        """The area, its projects, and its tasks (direct and via projects)."""
        op = "area_context"
        index = self._index()
        try:
            area = resolve_target(index, name, kinds=(RecordKind.AREA,))
        except GtdError as exc:
            return result_from_error(op, exc)
        assert isinstance(area, AreaRecord)

        projects = index.projects_in_area(area)
        tasks = index.tasks_in_area(area)
        direct = {t.path for t in index.tasks_directly_in_area(area)}
        task_items = []
        for task in _by_title(tasks):
            item = summarize(task)
            item["via"] = "area" if task.path in direct else "project"
            task_items.append(item)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "area": area.to_dict(include_body=True),
                "projects": summarize_all(_by_title(projects)),
                "tasks": task_items,
            },
            warnings=index.warnings_for(area, *projects, *tasks),
        )

    @traced
    def project_context(self, name: str) -> ServiceResult:
        """The project, its area, and its tasks."""
        op = "project_context"
        index = self._index()
        try:
            project = resolve_target(index, name, kinds=(RecordKind.PROJECT,))
        except GtdError as exc:
            return result_from_error(op, exc)
        assert isinstance(project, ProjectRecord)

        area = index.area_for_project(project)
        tasks = index.tasks_in_project(project)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "project": project.to_dict(include_body=True),
                "area": summarize(area) if area is not None else None,
                "tasks": summarize_all(_by_title(tasks)),
            },
            warnings=index.warnings_for(project, *tasks),
        )

    @traced
    def task_context(self, name: str) -> ServiceResult:
        """The task, its project, and its area (direct or through the project)."""
        op = "task_context"
        index = self._index()
        try:
            task = resolve_target(index, name, kinds=(RecordKind.TASK,))
        except GtdError as exc:
            return result_from_error(op, exc)
        assert isinstance(task, TaskRecord)

        project = index.project_for_task(task)
        area = index.area_for_task(task)
        related: list[Record] = [task]
        if project is not None:
            related.append(project)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "task": task.to_dict(include_body=True),
                "project": summarize(project) if project is not None else None,
                "area": summarize(area) if area is not None else None,
            },
            warnings=index.warnings_for(*related),
        )
