"""Failure taxonomy for record reads, lookups, and writes.

Every failure carries a machine-readable :class:`ErrorCode` so callers can
branch without matching on message text. Services translate these into
``ServiceError`` payloads; the directory scanner contains parse and
validation failures and turns them into warnings.

Unresolved references are not failures at all: they surface as warning
strings on index and query results.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Any


class ErrorCode(StrEnum):
    """Machine-distinguishable failure kinds."""

    NOT_FOUND = "NOT_FOUND"
    AMBIGUOUS = "AMBIGUOUS"
    PARSE_FAILED = "PARSE_FAILED"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    WRITE_FAILED = "WRITE_FAILED"


class GtdError(Exception):
    """Base class for all record failures."""

    code: ErrorCode = ErrorCode.PARSE_FAILED

    def __init__(
        self,
        message: str,
        *,
        path: Path | str | None = None,
        field: str | None = None,
        value: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = Path(path) if path is not None else None
        self.field = field
        self.value = value

    def detail(self) -> dict[str, Any]:
        """Context for structured error payloads (only populated keys)."""
        out: dict[str, Any] = {}
        if self.path is not None:
            out["path"] = str(self.path)
        if self.field is not None:
            out["field"] = self.field
        if self.value is not None:
            out["value"] = str(self.value)
        return out

    def with_path(self, path: Path | str) -> GtdError:
        """Attach *path* when the failure was raised on content alone."""
        if self.path is None:
            self.path = Path(path)
        return self

    def __str__(self) -> str:
        if self.path is not None:
            return f"{self.path}: {self.message}"
        return self.message


class RecordNotFoundError(GtdError):
    """A path or name resolved to nothing."""

    code = ErrorCode.NOT_FOUND


class AmbiguousMatchError(GtdError):
    """A name matched more than one record.

    The candidates are kept so the caller can ask the user to choose; the
    core never picks one on its own.
    """

    code = ErrorCode.AMBIGUOUS

    def __init__(self, message: str, *, candidates: list[Any], **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.candidates = candidates

    def detail(self) -> dict[str, Any]:
        out = super().detail()
        out["candidates"] = [
            {"title": getattr(c, "title", str(c)), "path": str(getattr(c, "path", ""))}
            for c in self.candidates
        ]
        return out


class RecordParseError(GtdError):
    """Frontmatter missing or malformed, or a required field absent."""

    code = ErrorCode.PARSE_FAILED


class RecordValidationError(RecordParseError):
    """A field value has the wrong shape (bad date, unknown status, ...)."""

    code = ErrorCode.VALIDATION_FAILED


class RecordWriteError(GtdError):
    """An I/O error during the atomic write sequence."""

    code = ErrorCode.WRITE_FAILED
