"""
Availability Engine

Core business logic for offering appointment start times:
- Duration parsing and bundle totals (duration.py)
- Staff and vendor day schedules (schedule.py)
- Staff blocked-time overrides (blocked.py)
- Per-staff booking conflicts (conflicts.py)
- Candidate slot generation (slots.py)
- Selectable dates over the booking horizon (horizon.py)
- Appointment snapshot refreshing (refresh.py)
- MongoDB reads and writes (repository.py)
"""
