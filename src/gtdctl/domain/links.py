"""Reference parsing: wikilinks, relative paths, and bare filenames.

A record points at another record with a string in one of these shapes::

    area: "[[Work]]"                  # wikilink
    area: "[[Work|Job stuff]]"        # wikilink with display alias
    area: "[[Work#Goals]]"            # wikilink to a heading
    area: ./areas/work.md             # relative path
    area: work.md                     # bare filename
    area: Work                        # bare name

Wikilinks and bare names carry a *name* that is looked up against record
titles. Paths and filenames carry no name; they are resolved by path.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ReferenceStyle(StrEnum):
    """How a reference was spelled in the source file."""

    WIKILINK = "wikilink"
    RELATIVE_PATH = "relative_path"
    FILENAME = "filename"
    NAME = "name"


@dataclass(frozen=True)
class Reference:
    """A parsed reference.

    ``target`` is the wikilink target (before any ``#`` or ``|``), the
    path, the filename, or the bare name depending on ``style``.
    """

    raw: str
    style: ReferenceStyle
    target: str
    display: str | None = None
    heading: str | None = None

    @property
    def name(self) -> str | None:
        """Lookup name, or ``None`` for path-shaped references."""
        if self.style in (ReferenceStyle.WIKILINK, ReferenceStyle.NAME):
            return self.target or None
        return None

    @property
    def is_path(self) -> bool:
        return self.style in (ReferenceStyle.RELATIVE_PATH, ReferenceStyle.FILENAME)

    @property
    def display_name(self) -> str:
        """Human label: alias, then target, with any ``.md`` suffix dropped."""
        if self.display:
            return self.display
        label = self.target.rsplit("/", 1)[-1]
        return label.removesuffix(".md")


def _is_wikilink(text: str) -> bool:
    return text.startswith("[[") and text.endswith("]]") and len(text) >= 4


def _is_path_shaped(text: str) -> bool:
    return text.startswith(("./", "../", "/")) or text.lower().endswith(".md")


def parse_reference(raw: str) -> Reference:
    """Classify and split a reference string.

    Whitespace around the whole value and around each wikilink part is
    ignored. An empty wikilink (``[[]]``, ``[[#Heading]]``, ``[[|Alias]]``)
    yields an empty target and therefore no name.
    """
    text = raw.strip()
    if _is_wikilink(text):
        inner = text[2:-2].strip()
        target, _, display = inner.partition("|")
        target, _, heading = target.partition("#")
        return Reference(
            raw=raw,
            style=ReferenceStyle.WIKILINK,
            target=target.strip(),
            display=display.strip() or None,
            heading=heading.strip() or None,
        )
    if text.startswith(("./", "../")):
        return Reference(raw=raw, style=ReferenceStyle.RELATIVE_PATH, target=text)
    if _is_path_shaped(text):
        return Reference(raw=raw, style=ReferenceStyle.FILENAME, target=text)
    return Reference(raw=raw, style=ReferenceStyle.NAME, target=text)


def extract_link_name(raw: str | None) -> str | None:
    """Return the lookup name of a reference, or ``None``.

    ``None`` means "resolve by path" (or there was nothing to resolve); it is
    never an error.

    Examples:
        >>> extract_link_name("[[Q1 Planning|Q1]]")
        'Q1 Planning'
        >>> extract_link_name("Work")
        'Work'
        >>> extract_link_name("./projects/q1.md") is None
        True
    """
    if raw is None:
        return None
    return parse_reference(str(raw)).name


def to_wikilink(value: str) -> str:
    """Normalize a newly written reference value.

    Bare names become ``[[name]]``. Existing wikilinks and path-shaped
    values are returned unchanged (stripped).
    """
    text = value.strip()
    if _is_wikilink(text) or _is_path_shaped(text):
        return text
    return f"[[{text}]]"
