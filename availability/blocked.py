"""
Blocked Time Filter

Staff-level overrides that remove availability for a date/time range even
when the weekly schedule says the staff member works.
"""

from datetime import date
from typing import Optional, Union

from schemas import AnyAvailable, Staff


def is_blocked(
    staff: Union[Staff, AnyAvailable, None],
    day: date,
    minute_of_day: int,
    end_minute: Optional[int] = None
) -> bool:
    """
    True when a blocked-time entry of the staff member covers the instant.

    Args:
        staff: staff member; "any available" (None or AnyAvailable) is never blocked
        day: calendar date being checked
        minute_of_day: instant, minutes from midnight
        end_minute: when given, check the half-open range [minute_of_day, end_minute)
            instead of the single instant
    """
    if staff is None or isinstance(staff, AnyAvailable):
        return False

    for block in staff.blocked_times:
        if block.date != day:
            continue
        if end_minute is None:
            if block.start_minutes <= minute_of_day < block.end_minutes:
                return True
        elif minute_of_day < block.end_minutes and end_minute > block.start_minutes:
            return True

    return False
