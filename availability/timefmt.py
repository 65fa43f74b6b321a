"""HH:mm helpers. All times are vendor-local minutes from midnight."""

import re
from typing import Optional

_HHMM = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")


def to_minutes(value: Optional[str]) -> Optional[int]:
    """'09:30' -> 570. Returns None for empty or malformed values."""
    if not value:
        return None
    m = _HHMM.match(str(value))
    if not m:
        return None
    hours, minutes = int(m.group(1)), int(m.group(2))
    if hours > 24 or minutes > 59 or (hours == 24 and minutes):
        return None
    return hours * 60 + minutes


def to_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
