"""Date and date-time values as written in frontmatter.

A value is either date-only (``2025-01-15``) or a date-time
(``2025-01-15T14:30:00``, ``2025-01-15 14:30``, ``2025-01-15T14:30:00Z``).
Records keep the original text; :class:`DateValue` parses it on demand for
comparisons so the written form is never rewritten behind the user's back.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Plain scalars matching this are resolved as timestamps by YAML 1.2 loaders.
# Mirrors ruamel.yaml's implicit resolver so emitted values stay unquoted.
YAML_TIMESTAMP_PATTERN = re.compile(
    r"""^(?:[0-9][0-9][0-9][0-9]-[0-9][0-9]-[0-9][0-9]
    |[0-9][0-9][0-9][0-9] -[0-9][0-9]? -[0-9][0-9]?
    (?:[Tt]|[ \t]+)[0-9][0-9]?
    :[0-9][0-9] :[0-9][0-9] (?:\.[0-9]*)?
    (?:[ \t]*(?:Z|[-+][0-9][0-9]?(?::[0-9][0-9])?))?)$""",
    re.X,
)


@dataclass(frozen=True, order=False)
class DateValue:
    """A parsed date or date-time that remembers which one it was."""

    raw: str
    value: date | datetime

    @property
    def is_date_only(self) -> bool:
        return not isinstance(self.value, datetime)

    @property
    def date(self) -> date:
        if isinstance(self.value, datetime):
            return self.value.date()
        return self.value

    def sort_key(self) -> datetime:
        """Naive UTC datetime; date-only values sort at midnight."""
        if isinstance(self.value, datetime):
            if self.value.tzinfo is not None:
                return self.value.astimezone(UTC).replace(tzinfo=None)
            return self.value
        return datetime(self.value.year, self.value.month, self.value.day)

    @classmethod
    def parse(cls, text: str) -> DateValue:
        """Parse *text*, raising ``ValueError`` for anything unrecognized."""
        raw = str(text).strip()
        if _DATE_ONLY.match(raw):
            return cls(raw=raw, value=date.fromisoformat(raw))
        if len(raw) < 16 or raw[10] not in "Tt ":
            msg = f"invalid date/datetime format: {raw!r}"
            raise ValueError(msg)
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError as exc:
            msg = f"invalid date/datetime format: {raw!r}"
            raise ValueError(msg) from exc
        return cls(raw=raw, value=parsed)


def is_date_text(text: str) -> bool:
    """Check whether *text* parses as a date or date-time."""
    try:
        DateValue.parse(text)
    except ValueError:
        return False
    return True


def now_timestamp() -> str:
    """Current UTC time as ``YYYY-MM-DDTHH:MM:SSZ``."""
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def today() -> date:
    """Today's local date."""
    return datetime.now().date()


def end_of_week(day: date) -> date:
    """The Sunday closing the ISO week containing *day*."""
    return day + timedelta(days=6 - day.weekday())
