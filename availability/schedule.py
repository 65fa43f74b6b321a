"""
Staff Schedule Resolver

Resolves the open intervals of a day, considering:
- Staff weekly slots (per weekday)
- Staff per-weekday availability flags
- Vendor working hours (fallback when a staff member has no slot data)
- A fixed 09:00-17:00 window when the vendor has no working hours at all
"""

import logging
from typing import Iterable, List, Mapping, Optional, Sequence

from availability.errors import ConfigurationMissing, InvalidAssignment
from availability.timefmt import to_minutes
from schemas import Staff, TimeInterval, Weekday, WorkingHours

logger = logging.getLogger(__name__)

FALLBACK_WINDOW = TimeInterval(start_minutes=9 * 60, end_minutes=17 * 60)


def resolve_day_slots(staff: Staff, weekday: Weekday) -> List[TimeInterval]:
    """Explicit slots of the staff member for that weekday, or []."""
    return list(staff.weekday_slots.get(weekday) or [])


def resolve_vendor_day_slots(
    working_hours: Sequence[WorkingHours],
    weekday: Weekday
) -> List[TimeInterval]:
    """
    Vendor-wide interval for a weekday.

    Returns:
        [TimeInterval] when the vendor is open that day, [] when closed or when
        the opening hours for that day cannot be read.

    Raises:
        ConfigurationMissing: no working hours are configured at all.
    """
    if not working_hours:
        raise ConfigurationMissing("vendor has no working hours configured")

    day = next((wh for wh in working_hours if wh.weekday == weekday), None)
    if day is None or not day.is_available:
        return []

    start = to_minutes(day.start_time)
    end = to_minutes(day.end_time)
    if start is None or end is None or end <= start:
        logger.warning(
            "Unreadable working hours for %s: %r-%r", weekday.value, day.start_time, day.end_time
        )
        return []

    return [TimeInterval(start_minutes=start, end_minutes=end)]


def vendor_day_slots(working_hours: Sequence[WorkingHours], weekday: Weekday) -> List[TimeInterval]:
    """resolve_vendor_day_slots, degrading to FALLBACK_WINDOW when unconfigured."""
    try:
        return resolve_vendor_day_slots(working_hours, weekday)
    except ConfigurationMissing:
        logger.warning("No working hours configured, using fallback window 09:00-17:00")
        return [FALLBACK_WINDOW]


def merge_intervals(intervals: Iterable[TimeInterval]) -> List[TimeInterval]:
    """Join overlapping or adjacent intervals; result is sorted."""
    ordered = sorted(intervals, key=lambda i: i.start_minutes)
    if not ordered:
        return []

    merged = [ordered[0]]
    for current in ordered[1:]:
        last = merged[-1]
        if current.start_minutes <= last.end_minutes:
            if current.end_minutes > last.end_minutes:
                merged[-1] = TimeInterval(start_minutes=last.start_minutes, end_minutes=current.end_minutes)
        else:
            merged.append(current)

    return merged


def free_intervals(
    staff: Staff,
    weekday: Weekday,
    working_hours: Sequence[WorkingHours]
) -> List[TimeInterval]:
    """
    Open intervals of one staff member for a weekday.

    A weekday explicitly flagged unavailable yields nothing. A staff member
    without slot data for the day works the vendor's hours.
    """
    if staff.weekday_available.get(weekday) is False:
        return []

    slots = resolve_day_slots(staff, weekday)
    if slots:
        return merge_intervals(slots)

    return vendor_day_slots(working_hours, weekday)


def named_staff(assignments: Iterable, roster: Mapping[str, Staff]) -> List[Staff]:
    """Distinct staff members pinned by the assignments, in first-seen order."""
    seen = []
    for assignment in assignments:
        staff_id = assignment.staff_id
        if staff_id is None or any(s.id == staff_id for s in seen):
            continue
        staff = roster.get(staff_id)
        if staff is None:
            raise InvalidAssignment(f"Staff {staff_id} is not part of the roster")
        seen.append(staff)
    return seen


def generating_intervals(
    assignments: Sequence,
    roster: Mapping[str, Staff],
    weekday: Weekday,
    working_hours: Sequence[WorkingHours]
) -> List[TimeInterval]:
    """
    Intervals candidate start times are enumerated from.

    When every assignment pins the same staff member, that staff member's own
    intervals are used. Mixed staff or "any available" assignments use the
    vendor-wide hours; each named staff member is checked afterwards.
    """
    staff_ids = {assignment.staff_id for assignment in assignments}
    only: Optional[str] = next(iter(staff_ids)) if len(staff_ids) == 1 else None

    if only is not None:
        staff = named_staff(assignments, roster)[0]
        return free_intervals(staff, weekday, working_hours)

    return vendor_day_slots(working_hours, weekday)
