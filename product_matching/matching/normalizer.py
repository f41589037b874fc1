"""
Text normalization applied before any taxonomy comparison.
"""
import re
from typing import Any

# ASCII quotes, Hebrew geresh/gershayim, typographic quotes
_QUOTE_CHARS = re.compile("['\"\u05f3\u05f4\u2018\u2019\u201c\u201d]")
_DIRECTION_MARKS = re.compile("[\u200e\u200f]")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: Any) -> str:
    """
    Canonicalize free text for comparison.

    Lower-cases, removes quote characters (so that 'קופ"ג' and 'קופג' compare
    equal), drops direction marks and collapses whitespace. None gives "".
    """
    if text is None:
        return ""
    normalized = str(text).lower()
    normalized = _QUOTE_CHARS.sub("", normalized)
    normalized = _DIRECTION_MARKS.sub("", normalized)
    return _WHITESPACE.sub(" ", normalized).strip()
