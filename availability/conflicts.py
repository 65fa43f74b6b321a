"""
Booking Conflict Detector

Detects overlaps between a candidate interval and existing appointments.
Conflicts are per staff member: different staff can work concurrently.
Intervals are half-open, so back-to-back appointments do not conflict.
"""

import logging
from datetime import date
from typing import Iterable, List

from availability.timefmt import to_minutes
from schemas import Appointment

logger = logging.getLogger(__name__)


def conflicting_appointments(
    existing: Iterable[Appointment],
    day: date,
    candidate_start: int,
    candidate_end: int,
    staff_id: str
) -> List[Appointment]:
    """
    Active appointments of staff_id on day that overlap [candidate_start, candidate_end).

    Overlap condition: candidate_start < stored_end AND candidate_end > stored_start.
    An appointment whose times cannot be read is reported as conflicting.
    """
    found = []
    for appt in existing:
        if appt.staff_id != staff_id or appt.date != day or not appt.is_active:
            continue

        stored_start = to_minutes(appt.start_time)
        stored_end = to_minutes(appt.end_time)
        if stored_start is None or stored_end is None:
            logger.warning(
                "Appointment %s has unreadable times %r-%r, treating as conflict",
                appt.id, appt.start_time, appt.end_time
            )
            found.append(appt)
            continue

        if candidate_start < stored_end and candidate_end > stored_start:
            found.append(appt)

    return found


def overlaps(
    existing: Iterable[Appointment],
    day: date,
    candidate_start: int,
    candidate_end: int,
    staff_id: str
) -> bool:
    return bool(conflicting_appointments(existing, day, candidate_start, candidate_end, staff_id))
