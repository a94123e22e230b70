"""
String Helpers.

Slug generation for export filenames and the character checks shared
by the form and registration validators.
"""

from __future__ import annotations

import re

__all__ = [
    "contains_control_chars",
    "slugify",
]

_RE_WHITESPACE_RUN = re.compile(r"\s+")

# C0 controls (U+0000–U+001F), DEL (U+007F), and C1 controls (U+0080–U+009F).
_CONTROL_CHAR_RE: re.Pattern[str] = re.compile(r"[\x00-\x1f\x7f-\x9f]")

def slugify(text: str) -> str:
    """Lowercase *text* and replace every whitespace run with ``-``.

    Leading and trailing whitespace are replaced too, not stripped::

        "Assembly Line A"  -> "assembly-line-a"
        "Paint  Shop"      -> "paint-shop"
    """
    return _RE_WHITESPACE_RUN.sub("-", text).lower()


def contains_control_chars(text: str) -> bool:
    return bool(_CONTROL_CHAR_RE.search(text))

