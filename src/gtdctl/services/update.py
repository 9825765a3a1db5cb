"""UpdateService: field edits, status changes, body appends, and archiving.

Pipeline per target: LOCATE → EDIT → WRITE → RESPOND

Targets are paths or titles. A path is handed to the writer as-is, so a
missing or malformed file reports NOT_FOUND or PARSE_FAILED from the read
itself. A title is resolved through the session index and must match
exactly one record.

Batch entry points resolve every target first, against one index, then
apply each independently: one failure never stops or alters the others,
and the result lists both outcomes.

Every mutating entry point takes ``dry_run``: the same resolution and
validation run and the result describes the change, but nothing is written.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Sequence
from datetime import date
from pathlib import Path
from typing import Any

from gtdctl.domain.dates import today
from gtdctl.domain.errors import GtdError, RecordNotFoundError
from gtdctl.domain.types import ARCHIVE_DIRNAME, RecordKind
from gtdctl.infrastructure.filesystem import atomic_write
from gtdctl.infrastructure.writer import (
    FieldEdit,
    archive_target,
    dated_note,
    move_to_archive,
    plan_append,
    plan_updates,
)
from gtdctl.services._helpers import (
    error_result,
    looks_like_path,
    resolve_target,
    result_from_error,
)
from gtdctl.services.base import BaseService
from gtdctl.services.result import ServiceError, ServiceResult
from gtdctl.services.telemetry import trace_span, traced


def _failure(target: str, exc: GtdError) -> dict[str, Any]:
    return {
        "target": target,
        "path": str(exc.path) if exc.path is not None else None,
        "code": str(exc.code),
        "message": exc.message,
        "detail": exc.detail(),
    }


def _batch_error(failed: list[dict[str, Any]]) -> ServiceError:
    """Summarize batch failures; a single shared code is kept as-is."""
    codes = {f["code"] for f in failed}
    code = failed[0]["code"] if len(codes) == 1 else "BATCH_FAILED"
    if len(failed) == 1:
        message = f"{failed[0]['target']}: {failed[0]['message']}"
    else:
        message = f"{len(failed)} targets failed"
    return ServiceError(code=code, message=message, detail={"failed": failed})


class UpdateService(BaseService):
    """Handles frontmatter edits and archiving."""

    # ------------------------------------------------------------------
    # Target resolution
    # ------------------------------------------------------------------

    def kind_for_path(self, path: Path) -> RecordKind | None:
        """Which record directory *path* lives in (archive included)."""
        parent = Path(os.path.abspath(path)).parent
        if parent.name == ARCHIVE_DIRNAME:
            parent = parent.parent
        for kind, directory in self._vault.directories.items():
            if os.path.normcase(os.path.abspath(directory)) == os.path.normcase(str(parent)):
                return kind
        return None

    def locate(self, target: str, *, kind: RecordKind | None = None) -> tuple[Path, RecordKind]:
        """Resolve *target* to ``(path, kind)`` without reading the file.

        Raises:
            RecordNotFoundError: No record matches, or a path lies outside
                every record directory.
            AmbiguousMatchError: A title matches several records.
        """
        if looks_like_path(target):
            path = Path(target).expanduser()
            path_kind = self.kind_for_path(path)
            if path_kind is None:
                record = self._index(include_archived=True).find_by_path(path)
                path_kind = record.kind if record is not None else None
            if path_kind is None:
                msg = "path is not inside the tasks, projects or areas directory"
                raise RecordNotFoundError(msg, path=path)
            if kind is not None and path_kind != kind:
                msg = f"path is a {path_kind} record, not a {kind}"
                raise RecordNotFoundError(msg, path=path)
            return path, path_kind

        kinds = (kind,) if kind is not None else tuple(RecordKind)
        record = resolve_target(self._index(), target, kinds=kinds)
        return record.path, record.kind

    # ------------------------------------------------------------------
    # Single edits
    # ------------------------------------------------------------------

    @traced
    def update(
        self,
        target: str,
        edits: Sequence[FieldEdit],
        *,
        kind: RecordKind | None = None,
        dry_run: bool = False,
    ) -> ServiceResult:
        """Apply *edits* to one record's frontmatter.

        With *dry_run* the edited record and its field changes are returned
        and nothing is written.
        """
        op = "update"
        try:
            path, record_kind = self.locate(target, kind=kind)
            item = self._edit(path, record_kind, edits, dry_run=dry_run)
        except GtdError as exc:
            return result_from_error(op, exc)
        finally:
            if not dry_run:
                self._vault.invalidate()
        return ServiceResult(ok=True, op=op, data=item)

    def _edit(
        self,
        path: Path,
        kind: RecordKind,
        edits: Sequence[FieldEdit],
        *,
        dry_run: bool,
    ) -> dict[str, Any]:
        limits = self._vault.scan_config
        with trace_span("write") as span:
            plan = plan_updates(
                path,
                edits,
                kind=kind,
                max_file_bytes=limits.max_file_bytes,
                max_frontmatter_bytes=limits.max_frontmatter_bytes,
            )
            if not dry_run:
                atomic_write(path, plan.content)
            if span is not None:
                span.annotate("path", str(path))
                span.annotate("dry_run", dry_run)
        return {
            "path": str(plan.record.path),
            "kind": str(kind),
            "fields": sorted({e.field for e in edits}),
            "changes": plan.changes,
            "dry_run": dry_run,
            "record": plan.record.to_dict(),
        }

    @traced
    def append_body(
        self,
        target: str,
        text: str,
        *,
        kind: RecordKind | None = None,
        on: date | None = None,
        dry_run: bool = False,
    ) -> ServiceResult:
        """Append *text*, stamped ``[YYYY-MM-DD]``, to the end of a record's body.

        The frontmatter is left byte-for-byte as it was.
        """
        op = "append_body"
        if not text.strip():
            return error_result(op, "VALIDATION_FAILED", "Text to append cannot be empty")
        note = dated_note(text, on or today())
        limits = self._vault.scan_config
        try:
            path, record_kind = self.locate(target, kind=kind)
            with trace_span("write") as span:
                plan = plan_append(
                    path,
                    note,
                    kind=record_kind,
                    max_file_bytes=limits.max_file_bytes,
                    max_frontmatter_bytes=limits.max_frontmatter_bytes,
                )
                if not dry_run:
                    atomic_write(path, plan.content)
                if span is not None:
                    span.annotate("path", str(path))
        except GtdError as exc:
            return result_from_error(op, exc)
        finally:
            if not dry_run:
                self._vault.invalidate()
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "path": str(path),
                "kind": str(record_kind),
                "title": plan.record.title,
                "appended": note,
                "dry_run": dry_run,
            },
        )

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    def _batch(
        self,
        op: str,
        targets: Sequence[str],
        action: Callable[[Path, RecordKind], dict[str, Any]],
        *,
        kind: RecordKind | None,
        dry_run: bool,
    ) -> ServiceResult:
        """Resolve every target against one index, then act on each.

        The index is dropped once, after the last write, so a batch of
        title targets costs a single scan.
        """
        located: list[tuple[str, tuple[Path, RecordKind] | GtdError]] = []
        for target in targets:
            try:
                located.append((target, self.locate(target, kind=kind)))
            except GtdError as exc:
                located.append((target, exc))

        succeeded: list[dict[str, Any]] = []
        failed: list[dict[str, Any]] = []
        try:
            for target, outcome in located:
                if isinstance(outcome, GtdError):
                    failed.append(_failure(target, outcome))
                    continue
                try:
                    succeeded.append(action(*outcome))
                except GtdError as exc:
                    failed.append(_failure(target, exc))
        finally:
            if not dry_run:
                self._vault.invalidate()
        return ServiceResult(
            ok=not failed,
            op=op,
            data={"succeeded": succeeded, "failed": failed, "dry_run": dry_run},
            error=_batch_error(failed) if failed else None,
        )

    @traced
    def batch_update(
        self,
        targets: Sequence[str],
        edits: Sequence[FieldEdit],
        *,
        kind: RecordKind | None = None,
        dry_run: bool = False,
    ) -> ServiceResult:
        """Apply the same *edits* to each target independently."""
        return self._batch(
            "batch_update",
            targets,
            lambda path, k: self._edit(path, k, edits, dry_run=dry_run),
            kind=kind,
            dry_run=dry_run,
        )

    @traced
    def set_status(
        self,
        targets: Sequence[str],
        status: str,
        *,
        kind: RecordKind | None = None,
        dry_run: bool = False,
    ) -> ServiceResult:
        """Set ``status`` on each target; ``completed-at`` follows the status."""
        edits = [FieldEdit.set("status", status)]
        return self._batch(
            "set_status",
            targets,
            lambda path, k: self._edit(path, k, edits, dry_run=dry_run),
            kind=kind,
            dry_run=dry_run,
        )

    @traced
    def archive(
        self,
        targets: Sequence[str],
        *,
        kind: RecordKind | None = None,
        dry_run: bool = False,
    ) -> ServiceResult:
        """Move each target into its directory's ``archive/`` folder."""

        def archive_one(path: Path, record_kind: RecordKind) -> dict[str, Any]:
            new_path = archive_target(path) if dry_run else move_to_archive(path)
            return {
                "path": str(path),
                "kind": str(record_kind),
                "archived_path": str(new_path),
                "dry_run": dry_run,
            }

        return self._batch("archive", targets, archive_one, kind=kind, dry_run=dry_run)
