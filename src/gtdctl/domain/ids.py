"""Filename slugs derived from record titles.

The slug is the stable on-disk name of a record; it is computed once at
creation and never recomputed when the title changes.
"""

from __future__ import annotations

import re
import unicodedata

MAX_SLUG_LENGTH = 100
FALLBACK_SLUG = "untitled"


def slugify(title: str) -> str:
    """Normalize a title into a filesystem-safe slug.

    Keeps ASCII letters and digits (lowercased), turns spaces, underscores
    and hyphens into single hyphens, and drops everything else. Accented
    letters are folded to their ASCII base first.

    Examples:
        >>> slugify("Fix: login bug")
        'fix-login-bug'
        >>> slugify("Task (important)")
        'task-important'
        >>> slugify("!!!")
        'untitled'
    """
    text = unicodedata.normalize("NFKD", title)
    text = text.encode("ascii", "ignore").decode("ascii").lower()
    text = re.sub(r"[\s_-]+", "-", text)
    text = re.sub(r"[^a-z0-9-]", "", text)
    text = re.sub(r"-{2,}", "-", text).strip("-")
    if len(text) > MAX_SLUG_LENGTH:
        text = text[:MAX_SLUG_LENGTH].rstrip("-")
    return text or FALLBACK_SLUG
