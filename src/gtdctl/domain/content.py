"""Record models and frontmatter parsing.

A record file is a ``---`` delimited YAML block followed by free-form
markdown. There are two parse paths and they are kept apart on purpose:

- **Typed** (:func:`parse_record`): frontmatter validated into a frozen
  :class:`TaskRecord`, :class:`ProjectRecord` or :class:`AreaRecord`. Used
  by every read path. Keys the schema does not know land in ``extra``.
- **Raw** (:func:`load_document`): frontmatter loaded into an ordered
  ruamel.yaml round-trip tree (:class:`FrontmatterDocument`) plus the body
  text exactly as it appears on disk. Used by every write path so that
  unknown keys, quoting and date spellings survive an edit.

Date-like scalars are never converted to ``date``/``datetime`` objects by
either path. They load as :class:`RawTimestamp` strings and dump back
verbatim, so ``due: 2025-01-15`` can never turn into a date-time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from io import StringIO
from pathlib import Path
from typing import Annotated, Any, ClassVar, NoReturn

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap
from ruamel.yaml.constructor import RoundTripConstructor
from ruamel.yaml.error import YAMLError
from ruamel.yaml.representer import RoundTripRepresenter
from ruamel.yaml.scalarbool import ScalarBoolean

from gtdctl.domain.dates import DateValue
from gtdctl.domain.errors import RecordParseError, RecordValidationError
from gtdctl.domain.lifecycle import AreaStatus, ProjectStatus, TaskStatus
from gtdctl.domain.links import extract_link_name
from gtdctl.domain.types import ARCHIVE_DIRNAME, RecordKind

FRONTMATTER_DELIMITER = "---"
MAX_FRONTMATTER_BYTES = 64 * 1024

_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"

# Dash offset for block sequences when a file has none to copy from.
DEFAULT_SEQUENCE_OFFSET = 2

_KEY_LINE = re.compile(r"^( *)[^\s#-][^#]*:\s*(#.*)?$")
_DASH_LINE = re.compile(r"^( *)-(\s|$)")


# ---------------------------------------------------------------------------
# YAML round-trip with verbatim timestamps
# ---------------------------------------------------------------------------


class RawTimestamp(str):
    """A YAML timestamp scalar kept as its original text."""

    __slots__ = ()


class _RawConstructor(RoundTripConstructor):
    def construct_raw_timestamp(self, node: Any) -> RawTimestamp:
        return RawTimestamp(node.value)


_RawConstructor.add_constructor(_TIMESTAMP_TAG, _RawConstructor.construct_raw_timestamp)


class _RawRepresenter(RoundTripRepresenter):
    def represent_raw_timestamp(self, data: RawTimestamp) -> Any:
        return self.represent_scalar(_TIMESTAMP_TAG, str(data))


_RawRepresenter.add_representer(RawTimestamp, _RawRepresenter.represent_raw_timestamp)


def _new_yaml(sequence_offset: int = DEFAULT_SEQUENCE_OFFSET) -> YAML:
    """Create a fresh round-trip YAML instance.

    One instance per call: ruamel.yaml's YAML object is stateful and a
    failed dump can leave it unusable. *sequence_offset* is how far a list's
    dash sits to the right of its key: 0 for ``- item``, 2 for ``  - item``.
    """
    y = YAML()
    y.Constructor = _RawConstructor
    y.Representer = _RawRepresenter
    y.preserve_quotes = True
    y.default_flow_style = False
    y.width = 4096
    y.indent(mapping=2, sequence=sequence_offset + 2, offset=sequence_offset)
    return y


# ---------------------------------------------------------------------------
# Raw document (write path)
# ---------------------------------------------------------------------------


def split_frontmatter(
    content: str,
    *,
    max_frontmatter_bytes: int = MAX_FRONTMATTER_BYTES,
) -> tuple[str, str]:
    """Split *content* into ``(yaml_block, body)``.

    The first line must be ``---`` and a later line must close the block
    with ``---``. The body is returned byte-for-byte, including its leading
    newline handling and line endings.

    Raises:
        RecordParseError: If the block is missing, unterminated, or larger
            than *max_frontmatter_bytes*.
    """
    text = content.removeprefix("\ufeff")
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != FRONTMATTER_DELIMITER:
        raise RecordParseError("no frontmatter block at start of file")

    end_idx: int | None = None
    size = 0
    for i, line in enumerate(lines[1:], start=1):
        if line.strip() == FRONTMATTER_DELIMITER:
            end_idx = i
            break
        size += len(line.encode("utf-8"))
        if size > max_frontmatter_bytes:
            msg = f"frontmatter exceeds {max_frontmatter_bytes} bytes"
            raise RecordParseError(msg)

    if end_idx is None:
        raise RecordParseError("frontmatter block is not closed with '---'")

    yaml_block = "".join(lines[1:end_idx])
    body = "".join(lines[end_idx + 1 :])
    return yaml_block, body


def detect_sequence_offset(yaml_block: str) -> int | None:
    r"""Dash offset of the first block list under a key, or ``None``.

    Examples:
        >>> detect_sequence_offset("tags:\n- a\n")
        0
        >>> detect_sequence_offset("tags:\n  - a\n")
        2
        >>> detect_sequence_offset("title: T\n") is None
        True
    """
    key_indent: int | None = None
    for line in yaml_block.splitlines():
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        dash = _DASH_LINE.match(line)
        if dash and key_indent is not None:
            return max(len(dash.group(1)) - key_indent, 0)
        key = _KEY_LINE.match(line)
        key_indent = len(key.group(1)) if key else None
    return None


def parse_frontmatter_block(yaml_block: str) -> CommentedMap:
    """Load a YAML block into an ordered round-trip mapping.

    An empty block yields an empty mapping. Anything that is not a mapping
    at the top level is a parse failure.
    """
    try:
        loaded = _new_yaml().load(yaml_block)
    except YAMLError as exc:
        msg = f"malformed YAML in frontmatter: {exc}"
        raise RecordParseError(msg) from exc
    if loaded is None:
        return CommentedMap()
    if not isinstance(loaded, CommentedMap):
        msg = f"frontmatter must be a mapping, got {type(loaded).__name__}"
        raise RecordParseError(msg)
    return loaded


@dataclass
class FrontmatterDocument:
    """Editable frontmatter tree plus the untouched body text."""

    frontmatter: CommentedMap
    body: str
    sequence_offset: int = DEFAULT_SEQUENCE_OFFSET

    def render(self) -> str:
        """Serialize back to file content, keeping the file's list indent."""
        return render_document(
            self.frontmatter, self.body, sequence_offset=self.sequence_offset
        )


def load_document(
    content: str,
    *,
    max_frontmatter_bytes: int = MAX_FRONTMATTER_BYTES,
) -> FrontmatterDocument:
    """Parse *content* into a :class:`FrontmatterDocument` (raw path)."""
    yaml_block, body = split_frontmatter(content, max_frontmatter_bytes=max_frontmatter_bytes)
    offset = detect_sequence_offset(yaml_block)
    return FrontmatterDocument(
        frontmatter=parse_frontmatter_block(yaml_block),
        body=body,
        sequence_offset=DEFAULT_SEQUENCE_OFFSET if offset is None else offset,
    )


def render_document(
    frontmatter: CommentedMap | dict[str, Any],
    body: str,
    *,
    sequence_offset: int = DEFAULT_SEQUENCE_OFFSET,
) -> str:
    """Render a frontmatter tree and body into file content.

    Key order is whatever the tree holds; nothing is sorted or dropped.
    """
    yaml_text = ""
    if frontmatter:
        buf = StringIO()
        _new_yaml(sequence_offset).dump(frontmatter, buf)
        yaml_text = buf.getvalue()
    return f"{FRONTMATTER_DELIMITER}\n{yaml_text}{FRONTMATTER_DELIMITER}\n{body}"


def to_plain(value: Any) -> Any:
    """Convert a round-trip YAML value into plain Python containers."""
    if isinstance(value, dict):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    if isinstance(value, bool):
        return value
    if isinstance(value, ScalarBoolean):
        return bool(value)
    if isinstance(value, str):
        return str(value)
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        return float(value)
    return value


# ---------------------------------------------------------------------------
# Typed records (read path)
# ---------------------------------------------------------------------------


def _check_date(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if not isinstance(value, str):
        msg = f"expected a date string, got {type(value).__name__}"
        raise ValueError(msg)
    DateValue.parse(value)
    return str(value)


def _check_reference(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        msg = f"expected a reference string, got {type(value).__name__}"
        raise ValueError(msg)
    return str(value)


def _check_reference_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [str(value)]
    if isinstance(value, list):
        return [str(item) for item in value if item is not None]
    msg = f"expected a list of references, got {type(value).__name__}"
    raise ValueError(msg)


DateText = Annotated[str | None, BeforeValidator(_check_date)]
ReferenceText = Annotated[str | None, BeforeValidator(_check_reference)]
ReferenceList = Annotated[list[str], BeforeValidator(_check_reference_list)]


class Record(BaseModel):
    """Base record. Attributes map to frontmatter keys via aliases.

    ``path`` is the record's identity. ``extra`` holds every frontmatter key
    the schema does not recognize, converted to plain Python values.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: ClassVar[RecordKind]
    date_fields: ClassVar[tuple[str, ...]] = ()
    reference_fields: ClassVar[tuple[str, ...]] = ("area",)

    path: Path
    title: str
    body: str = ""
    extra: dict[str, Any] = Field(default_factory=dict)

    @field_validator("title", mode="before")
    @classmethod
    def _title_is_text(cls, value: Any) -> Any:
        if value is None:
            return value
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
            msg = f"expected text, got {type(value).__name__}"
            raise ValueError(msg)
        text = str(value).strip()
        if not text:
            msg = "title must not be empty"
            raise ValueError(msg)
        return text

    @classmethod
    def known_keys(cls) -> frozenset[str]:
        """Frontmatter keys understood by this model."""
        return frozenset(
            field.alias or name
            for name, field in cls.model_fields.items()
            if name not in ("path", "body", "extra")
        )

    @classmethod
    def field_for_key(cls, key: str) -> str | None:
        """Map a frontmatter key (``defer-until``) to its attribute name."""
        for name, field in cls.model_fields.items():
            if (field.alias or name) == key:
                return name
        return None

    @property
    def status_value(self) -> str | None:
        status = getattr(self, "status", None)
        return str(status) if status is not None else None

    @property
    def area_name(self) -> str | None:
        return extract_link_name(getattr(self, "area", None))

    @property
    def is_archived(self) -> bool:
        """Whether the file sits in an ``archive/`` subdirectory."""
        return self.path.parent.name == ARCHIVE_DIRNAME

    def get_value(self, key: str) -> Any:
        """Value for a frontmatter key or attribute name, else ``None``."""
        name = self.field_for_key(key) or key.replace("-", "_")
        if name in type(self).model_fields:
            return getattr(self, name)
        return self.extra.get(key)

    def date_value(self, key: str) -> DateValue | None:
        raw = self.get_value(key)
        if raw is None:
            return None
        return DateValue.parse(str(raw))

    def validation_warnings(self) -> list[str]:
        """Schema-level advisories that do not make the record unreadable."""
        return []

    def to_dict(self, *, include_body: bool = False) -> dict[str, Any]:
        """Serialize for service payloads, keyed by frontmatter names."""
        exclude = None if include_body else {"body"}
        data = self.model_dump(mode="json", by_alias=True, exclude=exclude)
        data["kind"] = str(self.kind)
        return data


class TaskRecord(Record):
    """An actionable task."""

    kind: ClassVar[RecordKind] = RecordKind.TASK
    date_fields: ClassVar[tuple[str, ...]] = (
        "created-at",
        "updated-at",
        "completed-at",
        "due",
        "scheduled",
        "defer-until",
    )
    reference_fields: ClassVar[tuple[str, ...]] = ("area", "projects")

    status: TaskStatus
    created_at: DateText = Field(default=None, alias="created-at")
    updated_at: DateText = Field(default=None, alias="updated-at")
    completed_at: DateText = Field(default=None, alias="completed-at")
    due: DateText = None
    scheduled: DateText = None
    defer_until: DateText = Field(default=None, alias="defer-until")
    area: ReferenceText = None
    projects: ReferenceList = Field(default_factory=list)

    @property
    def project(self) -> str | None:
        """The task's project reference (a task belongs to at most one)."""
        return self.projects[0] if self.projects else None

    @property
    def project_name(self) -> str | None:
        return extract_link_name(self.project)

    def validation_warnings(self) -> list[str]:
        warnings: list[str] = []
        if len(self.projects) > 1:
            warnings.append(
                f"projects has {len(self.projects)} entries; a task belongs to at most one project"
            )
        if self.status == TaskStatus.DONE and self.completed_at is None:
            warnings.append("done task is missing 'completed-at'")
        return warnings


class ProjectRecord(Record):
    """A project grouping tasks, optionally inside an area."""

    kind: ClassVar[RecordKind] = RecordKind.PROJECT
    date_fields: ClassVar[tuple[str, ...]] = ("updated-at", "start-date", "end-date")

    status: ProjectStatus | None = None
    unique_id: str | None = Field(default=None, alias="unique-id")
    area: ReferenceText = None
    updated_at: DateText = Field(default=None, alias="updated-at")
    start_date: DateText = Field(default=None, alias="start-date")
    end_date: DateText = Field(default=None, alias="end-date")
    description: str | None = None
    blocked_by: ReferenceList = Field(default_factory=list, alias="blocked-by")


class AreaRecord(Record):
    """An ongoing area of responsibility."""

    kind: ClassVar[RecordKind] = RecordKind.AREA
    date_fields: ClassVar[tuple[str, ...]] = ("updated-at",)
    reference_fields: ClassVar[tuple[str, ...]] = ()

    status: AreaStatus | None = None
    updated_at: DateText = Field(default=None, alias="updated-at")
    area_type: str | None = Field(default=None, alias="type")
    description: str | None = None


RECORD_MODELS: dict[RecordKind, type[Record]] = {
    RecordKind.TASK: TaskRecord,
    RecordKind.PROJECT: ProjectRecord,
    RecordKind.AREA: AreaRecord,
}


def get_record_model(kind: RecordKind | str) -> type[Record]:
    """Look up the model class for a record kind."""
    return RECORD_MODELS[RecordKind(kind)]


def _raise_validation(exc: ValidationError, path: Path) -> NoReturn:
    err = exc.errors()[0]
    loc = err.get("loc") or ()
    field = str(loc[0]) if loc else None
    if err.get("type") == "missing":
        msg = f"missing required field '{field}'"
        raise RecordParseError(msg, path=path, field=field) from exc
    msg = f"invalid value for '{field}': {err.get('msg', 'invalid')}"
    raise RecordValidationError(msg, path=path, field=field, value=err.get("input")) from exc


def record_from_frontmatter(
    kind: RecordKind | str,
    frontmatter: dict[str, Any],
    body: str,
    *,
    path: Path,
) -> Record:
    """Validate an already-loaded frontmatter mapping into a typed record."""
    model_cls = get_record_model(kind)
    known = model_cls.known_keys()
    data: dict[str, Any] = {}
    extra: dict[str, Any] = {}
    for key, value in frontmatter.items():
        name = str(key)
        if name in known:
            data[name] = to_plain(value)
        else:
            extra[name] = to_plain(value)
    try:
        return model_cls.model_validate(
            {**data, "path": path, "body": body.strip(), "extra": extra}
        )
    except ValidationError as exc:
        _raise_validation(exc, path)


def parse_record(
    kind: RecordKind | str,
    content: str,
    *,
    path: Path,
    max_frontmatter_bytes: int = MAX_FRONTMATTER_BYTES,
) -> Record:
    """Parse file *content* into a typed record (read path).

    Raises:
        RecordParseError: Missing/malformed frontmatter or a missing
            required field.
        RecordValidationError: A field value of the wrong shape, including
            a status outside the kind's vocabulary.
    """
    try:
        doc = load_document(content, max_frontmatter_bytes=max_frontmatter_bytes)
    except RecordParseError as exc:
        raise exc.with_path(path) from None
    return record_from_frontmatter(kind, doc.frontmatter, doc.body, path=path)
