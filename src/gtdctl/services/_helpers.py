"""Shared service-layer helper functions."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from gtdctl.domain.content import Record
from gtdctl.domain.errors import AmbiguousMatchError, ErrorCode, GtdError, RecordNotFoundError
from gtdctl.domain.types import RecordKind
from gtdctl.infrastructure.index import RelationshipIndex
from gtdctl.services.result import ServiceError, ServiceResult


def error_result(
    op: str,
    code: str | ErrorCode,
    message: str,
    *,
    detail: dict[str, Any] | None = None,
    warnings: list[str] | None = None,
) -> ServiceResult:
    """Build a failed ServiceResult."""
    return ServiceResult(
        ok=False,
        op=op,
        warnings=warnings or [],
        error=ServiceError(code=str(code), message=message, detail=detail or {}),
    )


def result_from_error(op: str, exc: GtdError, *, warnings: list[str] | None = None) -> ServiceResult:
    """Translate a domain failure into a failed ServiceResult."""
    return error_result(op, exc.code, exc.message, detail=exc.detail(), warnings=warnings)


def summarize(record: Record) -> dict[str, Any]:
    """Frontmatter-keyed payload for one record (body omitted)."""
    return record.to_dict()


def summarize_all(records: list[Record]) -> list[dict[str, Any]]:
    return [summarize(r) for r in records]


def looks_like_path(query: str) -> bool:
    """Targets naming a ``.md`` file are paths; anything else is a title."""
    return query.strip().lower().endswith(".md")


def resolve_target(
    index: RelationshipIndex,
    query: str,
    *,
    kinds: tuple[RecordKind, ...] = tuple(RecordKind),
    base: Path | None = None,
) -> Record:
    """Resolve a user-supplied path or title to exactly one record.

    A path that names an indexed file wins. Otherwise the title is matched
    with the index's hybrid lookup across *kinds*; exact matches in any kind
    take precedence over substring matches in every kind.

    Raises:
        RecordNotFoundError: Nothing matched.
        AmbiguousMatchError: More than one record matched.
    """
    text = query.strip()
    if looks_like_path(text):
        candidate = Path(text).expanduser()
        if not candidate.is_absolute() and base is not None:
            candidate = base / candidate
        record = index.find_by_path(candidate)
        if record is None or record.kind not in kinds:
            msg = f"no {'/'.join(str(k) for k in kinds)} record at path {text!r}"
            raise RecordNotFoundError(msg, path=candidate)
        return record

    needle = text.lower()
    exact: list[Record] = []
    partial: list[Record] = []
    for kind in kinds:
        for record in index.find_by_title(kind, text):
            if record.title.lower() == needle:
                exact.append(record)
            else:
                partial.append(record)
    matches = exact or partial

    if not matches:
        msg = f"no {'/'.join(str(k) for k in kinds)} matches {text!r}"
        raise RecordNotFoundError(msg, value=text)
    if len(matches) > 1:
        msg = f"{text!r} matches {len(matches)} records"
        raise AmbiguousMatchError(msg, candidates=matches, value=text)
    return matches[0]
