"""
Slot Candidate Generator

Generates the start times that can be offered for a bundle of services on one
date, considering:
- Bundle duration
- Staff and vendor schedules
- Staff blocked times
- Existing appointments of every named staff member

Every named staff member must be able to host the whole bundle starting at the
same instant. Different staff do not run their part at different clock times.
"""

import logging
from datetime import date, datetime
from typing import Dict, List, Mapping, Optional, Sequence, Union

from availability.blocked import is_blocked
from availability.conflicts import overlaps
from availability.duration import total_duration
from availability.errors import InvalidAssignment, InvalidBookingDate
from availability.schedule import free_intervals, generating_intervals, named_staff
from availability.timefmt import to_hhmm, to_minutes
from schemas import (
    Appointment,
    Assignment,
    FinalizedSelection,
    Service,
    Staff,
    Weekday,
    WorkingHours,
)

logger = logging.getLogger(__name__)

SLOT_GRANULARITY_MINUTES = 30


def _bundle(services: Union[Mapping[str, Service], Sequence[Service]]) -> Dict[str, Service]:
    if isinstance(services, Mapping):
        return dict(services)
    return {service.id: service for service in services}


def validate_assignments(
    assignments: Sequence[Assignment],
    services: Mapping[str, Service],
    roster: Mapping[str, Staff]
) -> None:
    """
    Raises:
        InvalidAssignment: empty bundle, a service outside the bundle, a service
            assigned twice or not at all, or a staff member outside the roster.
    """
    if not assignments:
        raise InvalidAssignment("At least one service assignment is required")

    assigned = set()
    for assignment in assignments:
        if assignment.service_id not in services:
            raise InvalidAssignment(f"Service {assignment.service_id} is not part of the bundle")
        if assignment.service_id in assigned:
            raise InvalidAssignment(f"Service {assignment.service_id} is assigned more than once")
        assigned.add(assignment.service_id)

    missing = set(services) - assigned
    if missing:
        raise InvalidAssignment(f"Services without assignment: {', '.join(sorted(missing))}")

    named_staff(assignments, roster)


def available_start_minutes(
    day: date,
    assignments: Sequence[Assignment],
    services: Union[Mapping[str, Service], Sequence[Service]],
    roster: Mapping[str, Staff],
    working_hours: Sequence[WorkingHours],
    existing: Sequence[Appointment],
    granularity: int = SLOT_GRANULARITY_MINUTES,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
    buffer_before: int = 0,
    buffer_after: int = 0
) -> List[int]:
    """
    Bookable start times for a date, in minutes from midnight.

    Algorithm:
        1. Validate the date and the assignments
        2. Sum the bundle duration plus the buffers before and after it
        3. Pick the generating intervals (single staff or vendor hours)
        4. Enumerate instants every `granularity` minutes inside each interval
        5. Drop instants whose bundle would overrun the interval, hit a blocked
           time, leave a named staff member's free intervals, or overlap one of
           their existing appointments
        6. Return the survivors in ascending order
    """
    today = today or (now.date() if now else date.today())
    if day < today:
        raise InvalidBookingDate(f"Cannot offer slots for a past date ({day.isoformat()})")

    bundle = _bundle(services)
    validate_assignments(assignments, bundle, roster)

    weekday = Weekday.of(day)
    total = total_duration(bundle[a.service_id] for a in assignments) + buffer_before + buffer_after
    staff_members = named_staff(assignments, roster)
    staff_intervals = {s.id: free_intervals(s, weekday, working_hours) for s in staff_members}

    earliest = None
    if now is not None and day == now.date():
        earliest = now.hour * 60 + now.minute

    candidates = 0
    starts = set()
    for interval in generating_intervals(assignments, roster, weekday, working_hours):
        t = interval.start_minutes
        while t + granularity <= interval.end_minutes:
            candidates += 1
            end = t + total
            if _survives(t, end, interval.end_minutes, day, staff_members, staff_intervals, existing, earliest):
                starts.add(t)
            t += granularity

    result = sorted(starts)
    logger.debug(
        "%s: %d candidates, %d offered (bundle %d min, %d staff)",
        day.isoformat(), candidates, len(result), total, len(staff_members)
    )
    return result


def _survives(t, end, bound, day, staff_members, staff_intervals, existing, earliest) -> bool:
    if end > bound:
        return False
    if earliest is not None and t < earliest:
        return False

    for staff in staff_members:
        if is_blocked(staff, day, t, end):
            return False
        if not any(i.contains(t, end) for i in staff_intervals[staff.id]):
            return False

    for staff in staff_members:
        if overlaps(existing, day, t, end, staff.id):
            return False

    return True


def generate_slots(
    day: date,
    assignments: Sequence[Assignment],
    services: Union[Mapping[str, Service], Sequence[Service]],
    roster: Mapping[str, Staff],
    working_hours: Sequence[WorkingHours],
    existing: Sequence[Appointment],
    granularity: int = SLOT_GRANULARITY_MINUTES,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
    buffer_before: int = 0,
    buffer_after: int = 0
) -> List[str]:
    """Bookable start times for a date as HH:mm strings, strictly ascending."""
    starts = available_start_minutes(
        day, assignments, services, roster, working_hours, existing,
        granularity=granularity, today=today, now=now,
        buffer_before=buffer_before, buffer_after=buffer_after
    )
    return [to_hhmm(t) for t in starts]


def finalize_selection(
    day: date,
    start_time: str,
    assignments: Sequence[Assignment],
    services: Union[Mapping[str, Service], Sequence[Service]]
) -> FinalizedSelection:
    """Build the {date, start, end, assignments} handed to booking submission."""
    start = to_minutes(start_time)
    if start is None:
        raise InvalidAssignment(f"Invalid start time {start_time!r}")

    bundle = _bundle(services)
    missing = [a.service_id for a in assignments if a.service_id not in bundle]
    if missing:
        raise InvalidAssignment(f"Service {missing[0]} is not part of the bundle")

    total = total_duration(bundle[a.service_id] for a in assignments)
    return FinalizedSelection(
        date=day,
        start_time=to_hhmm(start),
        end_time=to_hhmm(start + total),
        total_minutes=total,
        assignments=list(assignments),
    )
