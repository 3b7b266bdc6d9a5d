from __future__ import annotations

import re
from datetime import datetime, timezone

_EXTRA_FRACTION = re.compile(r"(\.\d{6})\d+")


def utc_now() -> datetime:
    """Timezone-aware UTC datetime for now."""
    return datetime.now(timezone.utc)

def to_iso(dt: datetime) -> str:
    """Aware datetime -> RFC 3339 string, e.g. 2024-05-01T12:00:00.123456+00:00."""
    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    return dt.isoformat()

def parse_iso(s: str) -> datetime:
    """
    RFC 3339 string -> aware datetime.
    Accepts "Z" and nanosecond fractions (older history files carry 9 digits,
    cut to microseconds here). Naive values are taken as UTC.
    """
    dt = datetime.fromisoformat(_EXTRA_FRACTION.sub(r"\1", s.strip()))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
