"""
Availability Calendar

Decides which dates of the booking horizon can be picked at all, before any
slot is computed.
"""

from datetime import date, timedelta
from typing import List, Mapping, Optional, Sequence, Tuple

from availability.schedule import named_staff
from schemas import Staff, Weekday, WorkingHours

BOOKING_HORIZON_DAYS = 60


def is_date_selectable(
    day: date,
    assignments: Sequence,
    roster: Mapping[str, Staff],
    working_hours: Sequence[WorkingHours],
    today: Optional[date] = None
) -> bool:
    """
    A date is selectable when it is not before today, the vendor is open that
    weekday and no named staff member has switched that weekday off. A missing
    staff flag counts as available; a vendor without any working hours counts
    as open.
    """
    if today is not None and day < today:
        return False

    weekday = Weekday.of(day)

    if working_hours:
        vendor_day = next((wh for wh in working_hours if wh.weekday == weekday), None)
        if vendor_day is None or not vendor_day.is_available:
            return False

    for staff in named_staff(assignments, roster):
        if staff.weekday_available.get(weekday) is False:
            return False

    return True


def selectable_dates(
    start: date,
    assignments: Sequence,
    roster: Mapping[str, Staff],
    working_hours: Sequence[WorkingHours],
    days: int = BOOKING_HORIZON_DAYS,
    today: Optional[date] = None
) -> List[Tuple[date, bool]]:
    """(date, selectable) for `days` consecutive dates beginning at start; dates before today are never selectable."""
    result = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        result.append((day, is_date_selectable(day, assignments, roster, working_hours, today=today)))
    return result
