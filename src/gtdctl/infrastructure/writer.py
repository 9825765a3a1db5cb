"""Fidelity writer: edit frontmatter fields without disturbing the rest.

Edits always go through the raw round-trip tree, never the typed record:

1. read the file (existence is learned here, not checked beforehand)
2. split off the body and load the frontmatter as a ruamel.yaml tree
3. set or remove the named keys in place
4. refresh ``updated-at``; stamp or clear ``completed-at`` on status moves
5. render, validate the result as a typed record, then atomically replace

Keys nobody edits keep their value, spelling and position. The body is
concatenated back unchanged. Newly written references are normalized to
``[[wikilink]]`` form; references already in the file are left alone.

Every write has a ``plan_*`` twin that computes the new content and the
field changes without touching disk; dry runs stop there. Body appends
carry the frontmatter over as raw text.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any

from ruamel.yaml.comments import CommentedMap, CommentedSeq
from ruamel.yaml.scalarstring import DoubleQuotedScalarString

from gtdctl.domain.content import (
    MAX_FRONTMATTER_BYTES,
    RawTimestamp,
    Record,
    get_record_model,
    load_document,
    parse_record,
    render_document,
    split_frontmatter,
    to_plain,
)
from gtdctl.domain.dates import YAML_TIMESTAMP_PATTERN, DateValue, now_timestamp
from gtdctl.domain.errors import (
    GtdError,
    RecordNotFoundError,
    RecordParseError,
    RecordValidationError,
)
from gtdctl.domain.ids import slugify
from gtdctl.domain.lifecycle import allowed_statuses, is_terminal, normalize_status
from gtdctl.domain.links import to_wikilink
from gtdctl.domain.types import ARCHIVE_DIRNAME, RecordKind
from gtdctl.infrastructure.filesystem import (
    MAX_FILE_BYTES,
    atomic_write,
    free_filename,
    move_into,
    read_text_bounded,
    reserve_filename,
)

logger = logging.getLogger(__name__)

UPDATED_AT = "updated-at"
COMPLETED_AT = "completed-at"
CREATED_AT = "created-at"

# Frontmatter keys whose values are references to other records.
_SINGLE_REFERENCE_KEYS = frozenset({"area"})
_LIST_REFERENCE_KEYS = frozenset({"projects", "blocked-by"})


@dataclass(frozen=True)
class FieldEdit:
    """Set *field* to *value*, or remove it when *value* is ``None``."""

    field: str
    value: str | list[str] | None = None

    @classmethod
    def set(cls, field: str, value: str | list[str]) -> FieldEdit:
        return cls(field=field, value=value)

    @classmethod
    def unset(cls, field: str) -> FieldEdit:
        return cls(field=field, value=None)

    @property
    def is_removal(self) -> bool:
        return self.value is None


def normalize_key(kind: RecordKind, field: str) -> str:
    """Map a user-facing field name onto its frontmatter key.

    ``defer_until`` becomes ``defer-until``; for tasks ``project`` becomes
    ``projects`` since a task stores its project as a one-item list.
    """
    key = field.strip().replace("_", "-")
    if kind == RecordKind.TASK and key == "project":
        return "projects"
    return key


def date_scalar(text: str) -> str:
    """Wrap a validated date string so it dumps unquoted and verbatim."""
    if YAML_TIMESTAMP_PATTERN.match(text):
        return RawTimestamp(text)
    return text


def _reference_scalar(value: str) -> str:
    normalized = to_wikilink(value)
    if normalized.startswith("[["):
        return DoubleQuotedScalarString(normalized)
    return normalized


def _as_list(value: str | list[str]) -> list[str]:
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    return [str(v).strip() for v in value if str(v).strip()]


def prepare_value(kind: RecordKind, key: str, value: str | list[str]) -> Any:
    """Validate and encode a new value for frontmatter *key*.

    Raises:
        RecordValidationError: Status outside the vocabulary or a date that
            does not parse.
    """
    model = get_record_model(kind)

    if key == "status":
        status = normalize_status(str(value))
        if status not in allowed_statuses(kind):
            msg = (
                f"invalid {kind} status {str(value)!r}; "
                f"expected one of: {', '.join(allowed_statuses(kind))}"
            )
            raise RecordValidationError(msg, field="status", value=value)
        return status

    if key in model.date_fields:
        text = str(value).strip()
        try:
            DateValue.parse(text)
        except ValueError as exc:
            raise RecordValidationError(str(exc), field=key, value=value) from exc
        return date_scalar(text)

    if key in _LIST_REFERENCE_KEYS:
        seq = CommentedSeq(_reference_scalar(item) for item in _as_list(value))
        return seq

    if key in _SINGLE_REFERENCE_KEYS:
        return _reference_scalar(str(value))

    if isinstance(value, list):
        return CommentedSeq(value)
    return value


def _status_text(frontmatter: CommentedMap) -> str | None:
    value = frontmatter.get("status")
    return str(value) if value is not None else None


def apply_edits(
    frontmatter: CommentedMap,
    edits: Iterable[FieldEdit],
    *,
    kind: RecordKind,
    now: str | None = None,
) -> CommentedMap:
    """Apply *edits* to a raw frontmatter tree in place and return it.

    ``updated-at`` is refreshed on every kind. ``completed-at`` (tasks only)
    is stamped when the status enters a terminal state and removed when it
    leaves one, unless the same edit set names ``completed-at`` explicitly.
    """
    stamp = now or now_timestamp()
    old_status = _status_text(frontmatter)
    touched: set[str] = set()

    for edit in edits:
        key = normalize_key(kind, edit.field)
        touched.add(key)
        if edit.value is None:
            frontmatter.pop(key, None)
            continue
        frontmatter[key] = prepare_value(kind, key, edit.value)

    frontmatter[UPDATED_AT] = date_scalar(stamp)

    if COMPLETED_AT in get_record_model(kind).date_fields and COMPLETED_AT not in touched:
        new_status = _status_text(frontmatter)
        was_terminal = is_terminal(kind, old_status)
        now_terminal = is_terminal(kind, new_status)
        if now_terminal and (not was_terminal or COMPLETED_AT not in frontmatter):
            frontmatter[COMPLETED_AT] = date_scalar(stamp)
        elif was_terminal and not now_terminal:
            frontmatter.pop(COMPLETED_AT, None)

    return frontmatter


@dataclass(frozen=True)
class UpdatePlan:
    """An edited record ready to be written, plus what changed."""

    path: Path
    record: Record
    content: str
    changes: list[dict[str, Any]]


def diff_frontmatter(before: dict[str, Any], after: dict[str, Any]) -> list[dict[str, Any]]:
    """``{field, old, new}`` for every key whose value differs, in file order."""
    changes = [
        {"field": key, "old": before.get(key), "new": value}
        for key, value in after.items()
        if before.get(key) != value
    ]
    changes.extend(
        {"field": key, "old": value, "new": None}
        for key, value in before.items()
        if key not in after
    )
    return changes


def plan_updates(
    path: Path,
    edits: Iterable[FieldEdit],
    *,
    kind: RecordKind,
    now: str | None = None,
    max_file_bytes: int = MAX_FILE_BYTES,
    max_frontmatter_bytes: int = MAX_FRONTMATTER_BYTES,
) -> UpdatePlan:
    """Compute the result of :func:`apply_updates` without writing it.

    Raises the same errors as :func:`apply_updates` short of a write failure.
    """
    content = read_text_bounded(path, max_bytes=max_file_bytes)
    try:
        doc = load_document(content, max_frontmatter_bytes=max_frontmatter_bytes)
        before = to_plain(doc.frontmatter)
        apply_edits(doc.frontmatter, edits, kind=kind, now=now)
    except GtdError as exc:
        raise exc.with_path(path) from None

    rendered = doc.render()
    record = parse_record(kind, rendered, path=path, max_frontmatter_bytes=max_frontmatter_bytes)
    changes = diff_frontmatter(before, to_plain(doc.frontmatter))
    return UpdatePlan(path=path, record=record, content=rendered, changes=changes)


def apply_updates(
    path: Path,
    edits: Iterable[FieldEdit],
    *,
    kind: RecordKind,
    now: str | None = None,
    max_file_bytes: int = MAX_FILE_BYTES,
    max_frontmatter_bytes: int = MAX_FRONTMATTER_BYTES,
) -> Record:
    """Edit the frontmatter of the record at *path* and return the result.

    Malformed input is never repaired: a file that does not parse fails the
    call and is left as it was. The edited content is validated as a typed
    record before anything touches the disk.

    Raises:
        RecordNotFoundError: *path* does not exist.
        RecordParseError: The existing file, or the edited result, does not
            parse.
        RecordValidationError: An edit value (or the result) is invalid.
        RecordWriteError: The atomic write failed; the original is intact.
    """
    plan = plan_updates(
        path,
        edits,
        kind=kind,
        now=now,
        max_file_bytes=max_file_bytes,
        max_frontmatter_bytes=max_frontmatter_bytes,
    )
    atomic_write(path, plan.content)
    logger.debug("Updated %s", path)
    return plan.record


def create_record_file(
    directory: Path,
    kind: RecordKind,
    frontmatter: CommentedMap,
    body: str,
) -> Record:
    """Write a new record file under a free slug derived from its title.

    The filename is claimed with an exclusive create before the content is
    written, so two concurrent creators never share a file.

    Raises:
        RecordParseError: The frontmatter lacks a title.
        RecordValidationError: The frontmatter does not validate.
        RecordWriteError: The directory or file could not be written.
    """
    title = frontmatter.get("title")
    if title is None or not str(title).strip():
        raise RecordParseError("missing required field 'title'", field="title")

    rendered = render_document(frontmatter, body)
    # Validate before claiming a filename so invalid input leaves no trace.
    parse_record(kind, rendered, path=directory / "new.md")

    path = reserve_filename(directory, slugify(str(title)))
    try:
        atomic_write(path, rendered)
    except GtdError:
        path.unlink(missing_ok=True)
        raise
    logger.debug("Created %s", path)
    return parse_record(kind, rendered, path=path)


def move_to_archive(path: Path) -> Path:
    """Move a record file into the ``archive/`` directory beside it.

    Raises:
        RecordValidationError: The file is already archived.
        RecordNotFoundError: The file does not exist.
        RecordWriteError: The move failed.
    """
    if path.parent.name == ARCHIVE_DIRNAME:
        raise RecordValidationError("record is already archived", path=path)
    target = move_into(path, path.parent / ARCHIVE_DIRNAME)
    logger.debug("Archived %s -> %s", path, target)
    return target


def archive_target(path: Path) -> Path:
    """Where :func:`move_to_archive` would put *path* at this moment.

    Raises:
        RecordValidationError: The file is already archived.
        RecordNotFoundError: The file does not exist.
    """
    if path.parent.name == ARCHIVE_DIRNAME:
        raise RecordValidationError("record is already archived", path=path)
    if not path.is_file():
        raise RecordNotFoundError("file not found", path=path)
    return free_filename(path.parent / ARCHIVE_DIRNAME, path.stem, suffix=path.suffix or ".md")


# ---------------------------------------------------------------------------
# Body appends
# ---------------------------------------------------------------------------


def dated_note(text: str, day: date) -> str:
    """``text [YYYY-MM-DD]``, the form appended notes take."""
    return f"{text.rstrip()} [{day.isoformat()}]"


def join_body(body: str, note: str) -> str:
    """Append *note* to *body* after one blank line, ending with a newline."""
    if not body.strip():
        return f"\n{note}\n"
    if body.endswith("\n"):
        return f"{body.rstrip()}\n\n{note}\n"
    return f"{body}\n\n{note}\n"


def plan_append(
    path: Path,
    note: str,
    *,
    kind: RecordKind,
    max_file_bytes: int = MAX_FILE_BYTES,
    max_frontmatter_bytes: int = MAX_FRONTMATTER_BYTES,
) -> UpdatePlan:
    """Compute the file with *note* appended to its body, without writing.

    The frontmatter block is carried over as raw text, so not even its
    whitespace changes.

    Raises:
        RecordNotFoundError: *path* does not exist.
        RecordParseError: The file does not parse as a *kind* record.
    """
    content = read_text_bounded(path, max_bytes=max_file_bytes)
    try:
        _, body = split_frontmatter(content, max_frontmatter_bytes=max_frontmatter_bytes)
    except GtdError as exc:
        raise exc.with_path(path) from None
    header = content[: len(content) - len(body)]
    rendered = header + join_body(body, note)
    record = parse_record(kind, rendered, path=path, max_frontmatter_bytes=max_frontmatter_bytes)
    changes = [{"field": "body", "old": None, "new": note}]
    return UpdatePlan(path=path, record=record, content=rendered, changes=changes)


def append_body(
    path: Path,
    note: str,
    *,
    kind: RecordKind,
    max_file_bytes: int = MAX_FILE_BYTES,
    max_frontmatter_bytes: int = MAX_FRONTMATTER_BYTES,
) -> Record:
    """Append *note* to the body of the record at *path* and write it atomically."""
    plan = plan_append(
        path,
        note,
        kind=kind,
        max_file_bytes=max_file_bytes,
        max_frontmatter_bytes=max_frontmatter_bytes,
    )
    atomic_write(path, plan.content)
    logger.debug("Appended to %s", path)
    return plan.record
