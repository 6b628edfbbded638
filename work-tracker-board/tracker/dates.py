from __future__ import annotations

from datetime import date, datetime
from typing import Optional

import pandas as pd


def parse_date(raw: Optional[str]) -> Optional[date]:
    """Best-effort calendar date from a user-entered string, None if it does not parse."""
    if not raw:
        return None
    text = str(raw).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    try:
        ts = pd.to_datetime(text, errors="coerce")
    except Exception:
        return None
    if ts is None or pd.isna(ts):
        return None
    return ts.date()


def is_later(candidate: Optional[str], current: Optional[str]) -> bool:
    """True when ``candidate`` is a later date than ``current``.

    Both sides are coerced to dates; if either does not parse the raw
    strings are compared instead.
    """
    if not candidate:
        return False
    if not current:
        return True
    a, b = parse_date(candidate), parse_date(current)
    if a is not None and b is not None:
        return a > b
    return str(candidate) > str(current)


def format_month_year(raw: Optional[str]) -> str:
    """'2024-06-01' -> 'June 2024'; empty for missing or unparseable input."""
    d = parse_date(raw)
    if d is None:
        return ""
    return datetime(d.year, d.month, 1).strftime("%B %Y")
