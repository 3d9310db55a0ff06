from __future__ import annotations

import re
from typing import Optional


_SHORTHAND = re.compile(r"([0-9]+(?:\.[0-9]+)?)\s*([KMB]?)\b")


def parse_int_shorthand(value) -> Optional[int]:
    """Parse strings like '1.2K', '3M', '4,500 connections', '500+' into an integer.

    Returns None for unparsable inputs.
    """
    if value is None:
        return None
    s = str(value).strip().upper().replace(",", "")
    if not s:
        return None
    m = _SHORTHAND.search(s)
    if not m:
        return None
    num = float(m.group(1))
    factor = {"K": 1000, "M": 1000000, "B": 1000000000}.get(m.group(2), 1)
    return int(round(num * factor))


def parse_count(value) -> int:
    """Engagement counters: '12 comments' -> 12, missing or unparsable -> 0."""
    parsed = parse_int_shorthand(value)
    return parsed if parsed is not None else 0


def parse_degree(value) -> Optional[int]:
    """'1st', '· 2nd', '3rd+' -> 1/2/3; anything else -> None."""
    if not value:
        return None
    m = re.search(r"([123])(?:st|nd|rd)", str(value).lower())
    if not m:
        return None
    return int(m.group(1))
