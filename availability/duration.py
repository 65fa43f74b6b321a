"""
Duration Aggregator

Service durations arrive as free text ("30 min", "1 hour", "1h 30m") or plain
minutes. Anything that cannot be read falls back to DEFAULT_DURATION_MINUTES so
a badly entered catalog item never breaks the slot picker.
"""

import logging
import math
import re
from collections import defaultdict
from typing import Dict, Iterable, Mapping, Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MINUTES = 60

_PART = re.compile(
    r"(\d+(?:\.\d+)?)\s*(hours|hour|hrs|hr|h|minutes|minute|mins|min|m)\b",
    re.IGNORECASE,
)


def parse_duration(label: Union[int, float, str, None]) -> int:
    """
    Interpret a duration label as whole minutes.

    Examples:
        30 -> 30
        "45" -> 45
        "30 min" -> 30
        "1 hour" -> 60
        "1 hour 30 min" -> 90
        "1.5 hours" -> 90
        "tbd" -> 60
    """
    if isinstance(label, bool):
        return DEFAULT_DURATION_MINUTES
    if isinstance(label, (int, float)):
        minutes = int(label)
        return minutes if minutes > 0 else DEFAULT_DURATION_MINUTES

    text = (label or "").strip()
    if text.isdigit():
        minutes = int(text)
        return minutes if minutes > 0 else DEFAULT_DURATION_MINUTES

    total = 0.0
    for value, unit in _PART.findall(text):
        if unit.lower().startswith("h"):
            total += float(value) * 60
        else:
            total += float(value)

    minutes = int(round(total))
    if minutes <= 0:
        logger.debug("Unrecognized duration %r, using %s minutes", label, DEFAULT_DURATION_MINUTES)
        return DEFAULT_DURATION_MINUTES
    return minutes


def total_duration(services: Iterable) -> int:
    return sum(service.duration_minutes for service in services)


def per_staff_duration(assignments: Iterable, services: Mapping[str, object]) -> Dict[Optional[str], int]:
    """
    Minutes of work per named staff member. Services booked as "any available"
    are summed under the None key.

    Not used by the slot-fit check, which always reserves the full bundle for
    every named staff member.
    """
    totals: Dict[Optional[str], int] = defaultdict(int)
    for assignment in assignments:
        service = services[assignment.service_id]
        totals[assignment.staff_id] += service.duration_minutes
    return dict(totals)


def reserved_slots(total_minutes: int, granularity: int) -> int:
    """Display slots a bundle occupies, e.g. 45 minutes at 30 -> 2."""
    return math.ceil(total_minutes / granularity)
