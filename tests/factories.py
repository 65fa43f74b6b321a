"""Builders for engine inputs used across the test modules."""

from datetime import date

from availability.timefmt import to_minutes
from schemas import (
    AnyAvailable,
    Appointment,
    Assignment,
    BlockedTime,
    Service,
    SpecificStaff,
    Staff,
    TimeInterval,
    Weekday,
    WorkingHours,
)

MONDAY = date(2030, 1, 7)
SUNDAY = date(2030, 1, 13)
TODAY = date(2030, 1, 1)


def interval(start, end):
    return TimeInterval(start_minutes=to_minutes(start), end_minutes=to_minutes(end))


def service(service_id, duration=60, price=25.0):
    return Service(id=service_id, name=service_id.title(), duration=duration, price=price)


def staff(staff_id, slots=None, available=None, blocked=None):
    """slots: {Weekday: [("09:00", "12:00"), ...]}, blocked: [(date, "09:00", "09:30")]"""
    return Staff(
        id=staff_id,
        name=staff_id.upper(),
        weekday_slots={day: [interval(a, b) for a, b in ranges] for day, ranges in (slots or {}).items()},
        weekday_available=available or {},
        blocked_times=[
            BlockedTime(date=d, start_minutes=to_minutes(a), end_minutes=to_minutes(b))
            for d, a, b in (blocked or [])
        ],
    )


def week(start="09:00", end="17:00", closed=(Weekday.sunday,)):
    return [
        WorkingHours(
            weekday=day,
            is_available=day not in closed,
            start_time=start if day not in closed else None,
            end_time=end if day not in closed else None,
        )
        for day in Weekday
    ]


def appointment(staff_id, start, end, day=MONDAY, status="scheduled"):
    return Appointment(staff_id=staff_id, date=day, start_time=start, end_time=end, status=status)


def specific(service_id, staff_id):
    return Assignment(service_id=service_id, staff=SpecificStaff(staff_id=staff_id))


def any_staff(service_id):
    return Assignment(service_id=service_id, staff=AnyAvailable())


def roster(*members):
    return {m.id: m for m in members}
