"""CheckService: report vault problems without changing anything.

Issues found:
- files skipped by the scanner (parse or validation failures, size limits)
- references that resolve to no record, or to a duplicated title
- titles shared by more than one record of the same kind
- record-level advisories (a task with several projects, a done task
  without ``completed-at``)

Archived records are checked too. The result is always ``ok``; issues are
data, not failures.
"""

from __future__ import annotations

from typing import Any

from gtdctl.domain.types import RecordKind
from gtdctl.services.base import BaseService
from gtdctl.services.result import ServiceResult
from gtdctl.services.telemetry import traced

ERROR = "error"
WARNING = "warning"


def _issue(
    severity: str,
    category: str,
    message: str,
    *,
    kind: RecordKind | None = None,
    path: Any = None,
) -> dict[str, Any]:
    return {
        "severity": severity,
        "category": category,
        "kind": str(kind) if kind is not None else None,
        "path": str(path) if path is not None else None,
        "message": message,
    }


class CheckService(BaseService):
    """Vault integrity report."""

    @traced
    def check(self) -> ServiceResult:
        index = self._index(include_archived=True)
        issues: list[dict[str, Any]] = []

        for failure in index.scan_failures:
            issues.append(
                _issue(ERROR, str(failure.code).lower(), failure.message, path=failure.path)
            )
        scan_notices = {f.as_warning() for f in index.scan_failures}
        for warning in index.scan_warnings:
            if warning not in scan_notices:
                issues.append(_issue(WARNING, "scan_limit", warning))

        for kind in RecordKind:
            for title, records in index.duplicate_titles(kind).items():
                paths = ", ".join(str(r.path) for r in records)
                issues.append(
                    _issue(
                        WARNING,
                        "duplicate_title",
                        f"{len(records)} {kind.plural} titled '{title}': {paths}",
                        kind=kind,
                    )
                )
            for record in index.records(kind):
                for message in index.warnings_for(record):
                    issues.append(
                        _issue(WARNING, "reference", message, kind=kind, path=record.path)
                    )
                for message in record.validation_warnings():
                    issues.append(
                        _issue(WARNING, "schema", message, kind=kind, path=record.path)
                    )

        counts = {
            "tasks": len(index.tasks),
            "projects": len(index.projects),
            "areas": len(index.areas),
            "skipped": len(index.scan_failures),
            "errors": sum(1 for i in issues if i["severity"] == ERROR),
            "warnings": sum(1 for i in issues if i["severity"] == WARNING),
        }
        return ServiceResult(
            ok=True,
            op="check",
            data={"issues": issues, "counts": counts},
        )
