"""Query engine: stateless filter, sort, and limit over record lists.

Filters compose with AND across distinct criteria and OR within a status
list. Relationship criteria (project, area) consult a
:class:`RelationshipIndex` when one is supplied so that a task filed under
a project is found by that project's area as well.

Sorting puts records that lack the sort field after every record that has
it, in both directions.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, TypeVar

from gtdctl.domain.content import AreaRecord, ProjectRecord, Record, TaskRecord
from gtdctl.domain.dates import DateValue, end_of_week, today
from gtdctl.domain.lifecycle import AreaStatus, ProjectStatus, TaskStatus, normalize_status
from gtdctl.domain.links import extract_link_name
from gtdctl.infrastructure.index import RelationshipIndex

_R = TypeVar("_R", bound=Record)

DATE_SORT_FIELDS = frozenset(
    {
        "created-at",
        "updated-at",
        "completed-at",
        "due",
        "scheduled",
        "defer-until",
        "start-date",
        "end-date",
    }
)
SORT_FIELDS = frozenset({"title", "status", "path", *DATE_SORT_FIELDS})

DATE_KEYWORDS = ("today", "tomorrow", "this-week")


def parse_status_list(value: str | Iterable[str] | None) -> tuple[str, ...]:
    """Split ``"ready,in-progress"`` (or a list of such) into statuses."""
    if value is None:
        return ()
    parts = [value] if isinstance(value, str) else list(value)
    out: list[str] = []
    for part in parts:
        for item in str(part).split(","):
            if item.strip():
                out.append(normalize_status(item))
    return tuple(out)


@dataclass(frozen=True)
class RecordFilter:
    """Criteria for listing records. Unset criteria match everything.

    Attributes:
        statuses: OR-ed status values. When given, the default exclusion of
            closed, icebox and deferred tasks is lifted.
        project: Case-insensitive substring of the task's project name.
        area: Case-insensitive substring of the area name (tasks match via
            their own area or their project's area).
        due: ``today``, ``tomorrow``, ``this-week`` or ``YYYY-MM-DD``.
        overdue: Only tasks due before today.
        scheduled: Same vocabulary as *due*, on ``scheduled``.
        query: Case-insensitive substring of title, body or description.
        completed_after: Inclusive lower bound on ``completed-at``.
        completed_before: Inclusive upper bound on ``completed-at``.
        on: The date treated as "today" (defaults to the local date).
    """

    statuses: tuple[str, ...] = ()
    project: str | None = None
    area: str | None = None
    due: str | None = None
    overdue: bool = False
    scheduled: str | None = None
    query: str | None = None
    completed_after: str | None = None
    completed_before: str | None = None
    include_done: bool = False
    include_dropped: bool = False
    include_closed: bool = False
    include_icebox: bool = False
    include_deferred: bool = False
    include_archived: bool = False
    only_archived: bool = False
    on: date | None = field(default=None, compare=False)

    @property
    def reference_day(self) -> date:
        return self.on or today()

    @property
    def wants_archive(self) -> bool:
        return self.include_archived or self.only_archived


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def _date_of(value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return DateValue.parse(value).date
    except ValueError:
        return None


def _bound(value: str | None) -> date | None:
    """Parse a user-supplied date bound; ``ValueError`` if it is not a date."""
    if value is None:
        return None
    return DateValue.parse(value).date


def date_window(spec: str, day: date) -> tuple[date, date]:
    """Translate a date keyword or ``YYYY-MM-DD`` into an inclusive range.

    Raises:
        ValueError: *spec* is neither a keyword nor a date.
    """
    key = spec.strip().lower()
    if key == "today":
        return day, day
    if key == "tomorrow":
        nxt = day + timedelta(days=1)
        return nxt, nxt
    if key == "this-week":
        return day, end_of_week(day)
    parsed = DateValue.parse(spec).date
    return parsed, parsed


def _in_window(value: str | None, spec: str, day: date) -> bool:
    target = _date_of(value)
    if target is None:
        return False
    start, end = date_window(spec, day)
    return start <= target <= end


def matches_text(record: Record, needle: str) -> bool:
    """Case-insensitive substring match on title, body and description."""
    text = needle.lower()
    if text in record.title.lower() or text in record.body.lower():
        return True
    description = getattr(record, "description", None)
    return bool(description) and text in str(description).lower()


def _archive_ok(record: Record, flt: RecordFilter) -> bool:
    if flt.only_archived:
        return record.is_archived
    return flt.include_archived or not record.is_archived


def _name_contains(candidates: Iterable[str | None], needle: str) -> bool:
    text = needle.strip().lower()
    return any(c is not None and text in c.lower() for c in candidates)


def _task_project_names(task: TaskRecord, index: RelationshipIndex | None) -> list[str | None]:
    names: list[str | None] = [task.project_name]
    if index is not None:
        project = index.project_for_task(task)
        if project is not None:
            names.append(project.title)
    return names


def _task_area_names(task: TaskRecord, index: RelationshipIndex | None) -> list[str | None]:
    names: list[str | None] = [task.area_name]
    if index is not None:
        area = index.area_for_task(task)
        if area is not None:
            names.append(area.title)
        project = index.project_for_task(task)
        if project is not None:
            names.append(project.area_name)
    return names


def task_predicate(
    flt: RecordFilter, *, index: RelationshipIndex | None = None
) -> Callable[[TaskRecord], bool]:
    """Build a predicate implementing *flt* for tasks."""
    day = flt.reference_day
    statuses = set(flt.statuses)
    for spec in (flt.due, flt.scheduled):
        if spec:
            date_window(spec, day)
    completed_filter = flt.completed_after is not None or flt.completed_before is not None
    after = _bound(flt.completed_after)
    before = _bound(flt.completed_before)

    excluded: set[str] = set()
    if not statuses:
        if not (flt.include_done or flt.include_closed or completed_filter):
            excluded.add(TaskStatus.DONE)
        if not (flt.include_dropped or flt.include_closed or completed_filter):
            excluded.add(TaskStatus.DROPPED)
        if not flt.include_icebox:
            excluded.add(TaskStatus.ICEBOX)

    def predicate(task: TaskRecord) -> bool:
        if not _archive_ok(task, flt):
            return False
        if statuses and task.status not in statuses:
            return False
        if task.status in excluded:
            return False
        if not statuses and not flt.include_deferred:
            defer = _date_of(task.defer_until)
            if defer is not None and defer > day:
                return False
        if flt.project and not _name_contains(_task_project_names(task, index), flt.project):
            return False
        if flt.area and not _name_contains(_task_area_names(task, index), flt.area):
            return False
        if flt.due and not _in_window(task.due, flt.due, day):
            return False
        if flt.overdue:
            due = _date_of(task.due)
            if due is None or due >= day or task.status in (TaskStatus.DONE, TaskStatus.DROPPED):
                return False
        if flt.scheduled and not _in_window(task.scheduled, flt.scheduled, day):
            return False
        if completed_filter:
            completed = _date_of(task.completed_at)
            if completed is None:
                return False
            if after is not None and completed < after:
                return False
            if before is not None and completed > before:
                return False
        return not (flt.query and not matches_text(task, flt.query))

    return predicate


_TODAY_HIDDEN = frozenset({TaskStatus.DONE, TaskStatus.DROPPED, TaskStatus.ICEBOX})


def today_reasons(task: TaskRecord, day: date) -> list[str]:
    """Why *task* belongs on the today view for *day*; empty when it does not.

    Closed, icebox, archived and still-deferred tasks never qualify. Any
    other task qualifies when it is in progress, overdue, due or scheduled
    on *day*, or becomes actionable on *day* (``defer-until`` is *day*).
    """
    if task.status in _TODAY_HIDDEN or task.is_archived:
        return []
    defer = _date_of(task.defer_until)
    if defer is not None and defer > day:
        return []

    reasons: list[str] = []
    if task.status == TaskStatus.IN_PROGRESS:
        reasons.append("in-progress")
    due = _date_of(task.due)
    if due is not None and due < day:
        reasons.append("overdue")
    elif due == day:
        reasons.append("due-today")
    if _date_of(task.scheduled) == day:
        reasons.append("scheduled-today")
    if defer == day:
        reasons.append("newly-actionable")
    return reasons


def project_predicate(
    flt: RecordFilter, *, index: RelationshipIndex | None = None
) -> Callable[[ProjectRecord], bool]:
    """Build a predicate implementing *flt* for projects."""
    statuses = set(flt.statuses)
    hide_done = not statuses and not (flt.include_done or flt.include_closed)

    def predicate(project: ProjectRecord) -> bool:
        if not _archive_ok(project, flt):
            return False
        if statuses and (project.status is None or project.status not in statuses):
            return False
        if hide_done and project.status == ProjectStatus.DONE:
            return False
        if flt.area:
            names: list[str | None] = [extract_link_name(project.area)]
            if index is not None:
                area = index.area_for_project(project)
                if area is not None:
                    names.append(area.title)
            if not _name_contains(names, flt.area):
                return False
        return not (flt.query and not matches_text(project, flt.query))

    return predicate


def area_predicate(flt: RecordFilter) -> Callable[[AreaRecord], bool]:
    """Build a predicate implementing *flt* for areas.

    Areas with ``status: archived`` are hidden unless archived records are
    requested or a status list is given.
    """
    statuses = set(flt.statuses)

    def predicate(area: AreaRecord) -> bool:
        if not _archive_ok(area, flt):
            return False
        if statuses and (area.status is None or area.status not in statuses):
            return False
        if not statuses and not flt.wants_archive and area.status == AreaStatus.ARCHIVED:
            return False
        return not (flt.query and not matches_text(area, flt.query))

    return predicate


# ---------------------------------------------------------------------------
# Sort and limit
# ---------------------------------------------------------------------------


def sort_value(record: Record, field_name: str) -> Any:
    """Comparable value of *field_name*, or ``None`` when absent or empty."""
    key = field_name.strip().lower().replace("_", "-")
    if key == "path":
        return str(record.path).lower()
    raw = record.get_value(key)
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    if key in DATE_SORT_FIELDS:
        try:
            return DateValue.parse(str(raw)).sort_key()
        except ValueError:
            return None
    return str(raw).lower()


def sort_records(records: Sequence[_R], field_name: str, *, descending: bool = False) -> list[_R]:
    """Stable sort on *field_name*; records missing the field always go last."""
    present: list[tuple[Any, _R]] = []
    missing: list[_R] = []
    for record in records:
        value = sort_value(record, field_name)
        if value is None:
            missing.append(record)
        else:
            present.append((value, record))
    present.sort(key=lambda pair: pair[0], reverse=descending)
    return [record for _, record in present] + missing


def apply_limit(records: Sequence[_R], limit: int | None) -> list[_R]:
    if limit is None or limit < 0:
        return list(records)
    return list(records[:limit])


def run_query(
    records: Iterable[_R],
    predicate: Callable[[_R], bool] | None = None,
    *,
    sort: str | None = None,
    descending: bool = False,
    limit: int | None = None,
) -> list[_R]:
    """Filter, then sort, then limit."""
    selected = [r for r in records if predicate is None or predicate(r)]
    if sort:
        selected = sort_records(selected, sort, descending=descending)
    return apply_limit(selected, limit)
