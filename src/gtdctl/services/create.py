"""CreateService: new task, project, and area files.

Pipeline: VALIDATE → BUILD FRONTMATTER → RENDER BODY → RESERVE → WRITE → RESPOND

Filenames are slugs of the title with a numeric suffix on collision; the
name is claimed by exclusive create so concurrent creators never collide.
The body comes from a Jinja2 template that a vault can override under
``.gtdctl/templates/content/``.
"""

from __future__ import annotations

from typing import Any

from ruamel.yaml.comments import CommentedMap

from gtdctl.domain.dates import now_timestamp
from gtdctl.domain.errors import GtdError
from gtdctl.domain.links import extract_link_name
from gtdctl.domain.types import RecordKind
from gtdctl.infrastructure.templates import render_body
from gtdctl.infrastructure.writer import create_record_file, date_scalar, prepare_value
from gtdctl.services._helpers import error_result, result_from_error
from gtdctl.services.base import BaseService
from gtdctl.services.result import ServiceResult
from gtdctl.services.telemetry import trace_span, traced


class CreateService(BaseService):
    """Handles record creation."""

    @traced
    def create_task(
        self,
        title: str,
        *,
        status: str | None = None,
        area: str | None = None,
        project: str | None = None,
        due: str | None = None,
        scheduled: str | None = None,
        defer_until: str | None = None,
        body: str = "",
    ) -> ServiceResult:
        """Create a task. ``created-at`` and ``updated-at`` are stamped now."""
        stamp = now_timestamp()
        fields: list[tuple[str, Any]] = [
            ("status", status or self._vault.settings.defaults.task_status),
            ("created-at", date_scalar(stamp)),
            ("updated-at", date_scalar(stamp)),
            ("due", due),
            ("scheduled", scheduled),
            ("defer-until", defer_until),
            ("area", area),
            ("projects", project),
        ]
        return self._create(RecordKind.TASK, title, fields, body=body)

    @traced
    def create_project(
        self,
        title: str,
        *,
        status: str | None = None,
        area: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        description: str | None = None,
        body: str = "",
    ) -> ServiceResult:
        fields: list[tuple[str, Any]] = [
            ("status", status),
            ("area", area),
            ("start-date", start_date),
            ("end-date", end_date),
            ("description", description),
        ]
        return self._create(
            RecordKind.PROJECT, title, fields, body=body, description=description
        )

    @traced
    def create_area(
        self,
        title: str,
        *,
        status: str | None = None,
        area_type: str | None = None,
        description: str | None = None,
        body: str = "",
    ) -> ServiceResult:
        fields: list[tuple[str, Any]] = [
            ("status", status or self._vault.settings.defaults.area_status),
            ("type", area_type),
            ("description", description),
        ]
        return self._create(RecordKind.AREA, title, fields, body=body, description=description)

    # ------------------------------------------------------------------
    # Shared pipeline
    # ------------------------------------------------------------------

    def _create(
        self,
        kind: RecordKind,
        title: str,
        fields: list[tuple[str, Any]],
        *,
        body: str,
        description: str | None = None,
    ) -> ServiceResult:
        op = f"create_{kind}"
        if not title.strip():
            return error_result(op, "VALIDATION_FAILED", "Title cannot be empty")

        # ── VALIDATE + BUILD FRONTMATTER ─────────────────────────
        frontmatter = CommentedMap()
        frontmatter["title"] = title.strip()
        try:
            for key, value in fields:
                if value is None or (isinstance(value, str) and not value.strip()):
                    continue
                if key in ("created-at", "updated-at"):
                    frontmatter[key] = value
                else:
                    frontmatter[key] = prepare_value(kind, key, value)
        except GtdError as exc:
            return result_from_error(op, exc)

        warnings = self._reference_warnings(kind, title, frontmatter)

        # ── RENDER BODY ──────────────────────────────────────────
        rendered = render_body(
            str(kind),
            vault_root=self._vault.root,
            title=title.strip(),
            body=body.strip(),
            description=(description or "").strip(),
        ).strip()
        body_text = f"\n{rendered}\n" if rendered else ""

        # ── RESERVE + WRITE ──────────────────────────────────────
        try:
            with trace_span("write"):
                record = create_record_file(
                    self._vault.directory_for(kind), kind, frontmatter, body_text
                )
        except GtdError as exc:
            return result_from_error(op, exc, warnings=warnings)
        self._vault.invalidate()

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "kind": str(kind),
                "title": record.title,
                "path": str(record.path),
                "record": record.to_dict(),
            },
            warnings=warnings,
        )

    def _reference_warnings(
        self, kind: RecordKind, title: str, frontmatter: CommentedMap
    ) -> list[str]:
        """Warn about names that do not match an existing record yet."""
        checks: list[tuple[RecordKind, Any]] = [(RecordKind.AREA, frontmatter.get("area"))]
        projects = frontmatter.get("projects")
        if projects:
            checks.append((RecordKind.PROJECT, projects[0]))

        warnings: list[str] = []
        index = None
        for target_kind, raw in checks:
            name = extract_link_name(str(raw)) if raw is not None else None
            if name is None:
                continue
            if index is None:
                index = self._index()
            if not any(r.title.lower() == name.lower() for r in index.find_by_title(target_kind, name)):
                warnings.append(
                    f"{kind.title()} '{title.strip()}' references unknown {target_kind} '{name}'"
                )
        return warnings
