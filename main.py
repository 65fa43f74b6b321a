import logging
from datetime import date as Date, datetime
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from pymongo.errors import PyMongoError

import config
from availability.conflicts import conflicting_appointments
from availability.duration import reserved_slots, total_duration
from availability.errors import DataFetchFailure, InvalidAssignment, InvalidBookingDate, SlotUnavailable
from availability.horizon import selectable_dates
from availability.repository import MongoRepository
from availability.schedule import named_staff
from availability.slots import available_start_minutes, finalize_selection
from availability.timefmt import to_hhmm, to_minutes
from database import db
from schemas import Appointment, Assignment

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

NO_AVAILABLE_SLOTS_MESSAGE = "No available time slots for this date. Please choose another day."
ENGINE_COLLECTIONS = ("service", "staff", "workinghours", "appointment")


# ---------- Utils ----------

def serialize_model(model: BaseModel) -> dict:
    return model.model_dump(mode="json")


def get_repository() -> MongoRepository:
    return MongoRepository(db)


def parse_day(value: str) -> Date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid date format, expected YYYY-MM-DD")


# ---------- FastAPI App ----------

app = FastAPI(title="Salon Availability API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- Errors ----------

@app.exception_handler(InvalidAssignment)
def invalid_assignment_handler(request: Request, exc: InvalidAssignment):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(InvalidBookingDate)
def invalid_date_handler(request: Request, exc: InvalidBookingDate):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(DataFetchFailure)
def data_fetch_handler(request: Request, exc: DataFetchFailure):
    return JSONResponse(status_code=503, content={"detail": str(exc), "retryable": exc.retryable})


@app.exception_handler(SlotUnavailable)
def slot_unavailable_handler(request: Request, exc: SlotUnavailable):
    return JSONResponse(
        status_code=409,
        content={"detail": str(exc), "conflicts": [serialize_model(a) for a in exc.conflicts]},
    )


# ---------- Health ----------

@app.get("/")
def read_root():
    return {"message": "Salon Availability API running"}


@app.get("/test")
def test_database():
    """Reports whether the collections slot generation reads from are reachable."""
    response = {
        "database_configured": bool(config.DATABASE_URL and config.DATABASE_NAME),
        "connected": False,
        "collections": {name: False for name in ENGINE_COLLECTIONS},
        "slot_granularity_minutes": config.SLOT_GRANULARITY_MINUTES,
    }
    if db is None:
        return response

    try:
        present = set(db.list_collection_names())
    except PyMongoError as e:
        logger.warning("Database diagnostics failed: %s", e)
        response["error"] = str(e)[:80]
        return response

    response["connected"] = True
    response["collections"] = {name: name in present for name in ENGINE_COLLECTIONS}
    return response


# ---------- Request Models ----------

class SlotRequest(BaseModel):
    vendor_id: Optional[str] = None
    date: Date
    assignments: List[Assignment] = Field(..., min_length=1)
    buffer_before: int = Field(0, ge=0, description="Extra minutes reserved with the bundle")
    buffer_after: int = Field(0, ge=0, description="Extra minutes reserved with the bundle")


class CalendarRequest(BaseModel):
    vendor_id: Optional[str] = None
    assignments: List[Assignment] = Field(default_factory=list)
    start_date: Optional[Date] = None
    days: int = Field(config.BOOKING_HORIZON_DAYS, ge=1, le=366)


class BookingRequest(BaseModel):
    vendor_id: Optional[str] = None
    date: Date
    start_time: str = Field(..., pattern=r"^\d{1,2}:\d{2}$")
    assignments: List[Assignment] = Field(..., min_length=1)
    buffer_before: int = Field(0, ge=0)
    buffer_after: int = Field(0, ge=0)
    notes: Optional[str] = None


# ---------- Catalog ----------

@app.get("/api/services")
def list_services(vendor_id: Optional[str] = Query(None), repo: MongoRepository = Depends(get_repository)):
    return [
        {**serialize_model(s), "duration_minutes": s.duration_minutes}
        for s in repo.list_services(vendor_id)
    ]


@app.get("/api/staff")
def list_staff(vendor_id: Optional[str] = Query(None), repo: MongoRepository = Depends(get_repository)):
    return [serialize_model(s) for s in repo.list_staff(vendor_id)]


@app.get("/api/working-hours")
def list_working_hours(vendor_id: Optional[str] = Query(None), repo: MongoRepository = Depends(get_repository)):
    return [serialize_model(wh) for wh in repo.list_working_hours(vendor_id)]


# ---------- Availability ----------

@app.post("/api/availability/slots")
def get_available_slots(payload: SlotRequest, repo: MongoRepository = Depends(get_repository)):
    ctx = repo.load_booking_context(payload.vendor_id, payload.date, payload.assignments)

    starts = available_start_minutes(
        payload.date,
        payload.assignments,
        ctx.services,
        ctx.roster,
        ctx.working_hours,
        ctx.appointments,
        granularity=config.SLOT_GRANULARITY_MINUTES,
        now=datetime.now(),
        buffer_before=payload.buffer_before,
        buffer_after=payload.buffer_after,
    )
    total = total_duration(ctx.services[a.service_id] for a in payload.assignments)
    held = total + payload.buffer_before + payload.buffer_after

    response = {
        "date": payload.date.isoformat(),
        "slots": [to_hhmm(t) for t in starts],
        "total_minutes": total,
        "buffer_minutes": payload.buffer_before + payload.buffer_after,
        "reserved_slots": reserved_slots(held, config.SLOT_GRANULARITY_MINUTES),
    }
    if not starts:
        response["message"] = NO_AVAILABLE_SLOTS_MESSAGE
    return response


@app.post("/api/availability/calendar")
def get_available_dates(payload: CalendarRequest, repo: MongoRepository = Depends(get_repository)):
    staff_ids = {a.staff_id for a in payload.assignments if a.staff_id is not None}
    roster = {s.id: s for s in repo.list_staff(payload.vendor_id, ids=staff_ids)} if staff_ids else {}
    working_hours = repo.list_working_hours(payload.vendor_id)

    today = Date.today()
    days = selectable_dates(
        payload.start_date or today,
        payload.assignments,
        roster,
        working_hours,
        days=payload.days,
        today=today,
    )
    return [{"date": d.isoformat(), "selectable": ok} for d, ok in days]


# ---------- Appointments ----------

@app.get("/api/appointments")
def list_appointments(
    vendor_id: Optional[str] = Query(None),
    date: Optional[str] = Query(None, description="YYYY-MM-DD to filter by day"),
    staff_id: Optional[str] = Query(None),
    repo: MongoRepository = Depends(get_repository),
):
    day = parse_day(date) if date else None
    staff_ids = [staff_id] if staff_id else None
    return [serialize_model(a) for a in repo.list_appointments(vendor_id, day, staff_ids)]


@app.post("/api/appointments", status_code=201)
def create_appointment(payload: BookingRequest, repo: MongoRepository = Depends(get_repository)):
    # Fresh read: the slot list the customer picked from may be stale
    ctx = repo.load_booking_context(payload.vendor_id, payload.date, payload.assignments)

    starts = available_start_minutes(
        payload.date,
        payload.assignments,
        ctx.services,
        ctx.roster,
        ctx.working_hours,
        ctx.appointments,
        granularity=config.SLOT_GRANULARITY_MINUTES,
        now=datetime.now(),
        buffer_before=payload.buffer_before,
        buffer_after=payload.buffer_after,
    )
    selection = finalize_selection(payload.date, payload.start_time, payload.assignments, ctx.services)
    start = to_minutes(selection.start_time)

    if start not in starts:
        held_end = start + selection.total_minutes + payload.buffer_before + payload.buffer_after
        conflicts = []
        for staff in named_staff(payload.assignments, ctx.roster):
            conflicts.extend(conflicting_appointments(
                ctx.appointments, payload.date, start, held_end, staff.id
            ))
        logger.info(
            "Rejected booking at %s on %s: %d conflicts",
            selection.start_time, payload.date.isoformat(), len(conflicts)
        )
        raise SlotUnavailable("Time slot is no longer available", conflicts)

    # One appointment per staff choice, so per-staff conflict checks see it
    staff_keys = list(dict.fromkeys(a.staff_id for a in payload.assignments))
    appointments = [
        Appointment(
            vendor_id=payload.vendor_id,
            staff_id=staff_id,
            service_ids=[a.service_id for a in payload.assignments if a.staff_id == staff_id],
            date=payload.date,
            start_time=selection.start_time,
            end_time=selection.end_time,
            status="scheduled",
            notes=payload.notes,
        )
        for staff_id in staff_keys
    ]
    appointment_ids = repo.insert_appointments(appointments)

    return {**serialize_model(selection), "appointment_ids": appointment_ids}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
