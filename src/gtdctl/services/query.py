"""QueryService: listing, lookup, and free-text search.

Read-only surfaces over the session index:
- list_tasks / list_projects / list_areas: filtered, sorted, limited lists
- find: hybrid title lookup returning every match
- show: one record resolved from a path or title, with its body
- search: free-text match across kinds
- today: tasks needing attention on a given day
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from typing import Any

from gtdctl.domain.content import Record
from gtdctl.domain.dates import today
from gtdctl.domain.errors import GtdError
from gtdctl.domain.types import RecordKind
from gtdctl.services._helpers import (
    error_result,
    resolve_target,
    result_from_error,
    summarize,
    summarize_all,
)
from gtdctl.services.base import BaseService
from gtdctl.services.filtering import (
    SORT_FIELDS,
    RecordFilter,
    area_predicate,
    matches_text,
    project_predicate,
    run_query,
    sort_records,
    task_predicate,
    today_reasons,
)
from gtdctl.services.result import ServiceResult
from gtdctl.services.telemetry import trace_span, traced


class QueryService(BaseService):
    """Handles listing, lookup, and search."""

    # ------------------------------------------------------------------
    # list_* - filtered listing
    # ------------------------------------------------------------------

    @traced
    def list_tasks(
        self,
        flt: RecordFilter | None = None,
        *,
        sort: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> ServiceResult:
        flt = flt or RecordFilter()
        index = self._index(include_archived=flt.wants_archive)
        return self._list(
            "list_tasks",
            RecordKind.TASK,
            index.tasks,
            lambda: task_predicate(flt, index=index),
            index_warnings=index.scan_warnings,
            warnings_for=index.warnings_for,
            sort=sort,
            descending=descending,
            limit=limit,
        )

    @traced
    def list_projects(
        self,
        flt: RecordFilter | None = None,
        *,
        sort: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> ServiceResult:
        flt = flt or RecordFilter()
        index = self._index(include_archived=flt.wants_archive)
        return self._list(
            "list_projects",
            RecordKind.PROJECT,
            index.projects,
            lambda: project_predicate(flt, index=index),
            index_warnings=index.scan_warnings,
            warnings_for=index.warnings_for,
            sort=sort,
            descending=descending,
            limit=limit,
        )

    @traced
    def list_areas(
        self,
        flt: RecordFilter | None = None,
        *,
        sort: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> ServiceResult:
        flt = flt or RecordFilter()
        index = self._index(include_archived=flt.wants_archive)
        return self._list(
            "list_areas",
            RecordKind.AREA,
            index.areas,
            lambda: area_predicate(flt),
            index_warnings=index.scan_warnings,
            warnings_for=index.warnings_for,
            sort=sort,
            descending=descending,
            limit=limit,
        )

    # ------------------------------------------------------------------
    # today - what needs attention now
    # ------------------------------------------------------------------

    @traced
    def today(self, *, on: date | None = None) -> ServiceResult:
        """Tasks for *on* (default: the local date), ordered by due date.

        Each item carries ``today``: the reasons it made the list.
        """
        day = on or today()
        index = self._index()
        with trace_span("filter") as span:
            picked = [(task, today_reasons(task, day)) for task in index.tasks]
            picked = [(task, reasons) for task, reasons in picked if reasons]
            if span is not None:
                span.annotate("matched", len(picked))
        reasons_by_path = {task.path: reasons for task, reasons in picked}

        items = []
        for task in sort_records([task for task, _ in picked], "due"):
            item = summarize(task)
            item["today"] = reasons_by_path[task.path]
            items.append(item)
        return ServiceResult(
            ok=True,
            op="today",
            data={"kind": "task", "date": day.isoformat(), "count": len(items), "items": items},
            warnings=index.scan_warnings,
        )

    def _list(
        self,
        op: str,
        kind: RecordKind,
        records: Any,
        predicate_factory: Callable[[], Any],
        *,
        index_warnings: list[str],
        warnings_for: Any,
        sort: str | None,
        descending: bool,
        limit: int | None,
    ) -> ServiceResult:
        if sort is not None and sort.strip().lower().replace("_", "-") not in SORT_FIELDS:
            return error_result(
                op,
                "VALIDATION_FAILED",
                f"Cannot sort by {sort!r}; choose one of: {', '.join(sorted(SORT_FIELDS))}",
                detail={"field": "sort", "value": sort},
            )
        try:
            with trace_span("filter") as span:
                items = run_query(
                    records, predicate_factory(), sort=sort, descending=descending, limit=limit
                )
                if span is not None:
                    span.annotate("matched", len(items))
        except ValueError as exc:
            return error_result(op, "VALIDATION_FAILED", str(exc))

        warnings = list(index_warnings)
        warnings.extend(w for w in warnings_for(*items) if w not in warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={"kind": str(kind), "count": len(items), "items": summarize_all(items)},
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # find - hybrid title lookup
    # ------------------------------------------------------------------

    @traced
    def find(self, kind: RecordKind, title: str) -> ServiceResult:
        """Every record of *kind* matching *title* (exact first, then substring).

        Zero, one or many matches are all successful results; choosing
        between them is up to the caller.
        """
        index = self._index()
        matches = index.find_by_title(kind, title)
        return ServiceResult(
            ok=True,
            op="find",
            data={
                "kind": str(kind),
                "query": title,
                "count": len(matches),
                "items": summarize_all(matches),
            },
        )

    # ------------------------------------------------------------------
    # show - one record with body
    # ------------------------------------------------------------------

    @traced
    def show(
        self,
        query: str,
        *,
        kind: RecordKind | None = None,
        include_archived: bool = False,
    ) -> ServiceResult:
        """Resolve *query* (path or title) to one record and return it in full."""
        index = self._index(include_archived=include_archived)
        kinds = (kind,) if kind is not None else tuple(RecordKind)
        try:
            record = resolve_target(index, query, kinds=kinds)
        except GtdError as exc:
            return result_from_error("show", exc)

        return ServiceResult(
            ok=True,
            op="show",
            data={"kind": str(record.kind), "record": record.to_dict(include_body=True)},
            warnings=index.warnings_for(record),
        )

    # ------------------------------------------------------------------
    # search - free text
    # ------------------------------------------------------------------

    @traced
    def search(
        self,
        text: str,
        *,
        kinds: tuple[RecordKind, ...] | None = None,
        include_archived: bool = False,
        limit: int | None = None,
    ) -> ServiceResult:
        """Case-insensitive substring search over title, body and description."""
        if not text.strip():
            return error_result("search", "VALIDATION_FAILED", "Search text cannot be empty")

        index = self._index(include_archived=include_archived)
        hits: list[Record] = []
        for kind in kinds or tuple(RecordKind):
            hits.extend(r for r in index.records(kind) if matches_text(r, text.strip()))
        if limit is not None and limit >= 0:
            hits = hits[:limit]

        items = summarize_all(hits)
        return ServiceResult(
            ok=True,
            op="search",
            data={"query": text, "count": len(items), "items": items},
            warnings=index.scan_warnings,
        )
