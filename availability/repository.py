"""
MongoDB access for the availability engine.

Reads are point-in-time snapshots: the engine never writes back what it reads.
Every driver error is raised as DataFetchFailure so callers can show a
retryable error instead of treating the day as free. A stored document that
does not fit its model is also a DataFetchFailure, but not a retryable one.

vendor_id is optional on every read. Leaving it out reads the whole
collection, which is only meaningful for a single-vendor deployment.
"""

import functools
import logging
from datetime import date
from typing import Any, Dict, Iterable, List, NamedTuple, Optional

from bson import ObjectId
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from availability.errors import DataFetchFailure
from database import create_documents, get_documents
from schemas import ACTIVE_APPOINTMENT_STATUSES, Appointment, Service, Staff, WorkingHours

logger = logging.getLogger(__name__)


class BookingContext(NamedTuple):
    services: Dict[str, Service]
    roster: Dict[str, Staff]
    working_hours: List[WorkingHours]
    appointments: List[Appointment]


def _store_errors(func):
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        if self.db is None:
            raise DataFetchFailure("Database not available")
        try:
            return func(self, *args, **kwargs)
        except PyMongoError as e:
            logger.error("%s failed: %s", func.__name__, e)
            raise DataFetchFailure(f"Could not read from the database: {str(e)[:80]}") from e
        except ValidationError as e:
            logger.error("%s returned a malformed document: %s", func.__name__, e)
            raise DataFetchFailure("Stored data could not be read", retryable=False) from e
    return wrapper


def _to_model(model, doc: Dict[str, Any]):
    d = {**doc}
    if d.get("_id") is not None:
        d.setdefault("id", str(d.pop("_id")))
    return model.model_validate(d)


def _id_filter(ids: Iterable[str]) -> Dict[str, Any]:
    return {"_id": {"$in": [ObjectId(i) for i in ids if ObjectId.is_valid(i)]}}


class MongoRepository:

    def __init__(self, db):
        self.db = db

    @_store_errors
    def list_services(self, vendor_id: Optional[str] = None, ids: Optional[Iterable[str]] = None) -> List[Service]:
        filt: Dict[str, Any] = {"active": True}
        if vendor_id:
            filt["vendor_id"] = vendor_id
        if ids is not None:
            filt.update(_id_filter(ids))
        return [_to_model(Service, d) for d in get_documents("service", filt, database=self.db)]

    @_store_errors
    def list_staff(self, vendor_id: Optional[str] = None, ids: Optional[Iterable[str]] = None) -> List[Staff]:
        filt: Dict[str, Any] = {"active": True}
        if vendor_id:
            filt["vendor_id"] = vendor_id
        if ids is not None:
            filt.update(_id_filter(ids))
        return [_to_model(Staff, d) for d in get_documents("staff", filt, database=self.db)]

    @_store_errors
    def list_working_hours(self, vendor_id: Optional[str] = None) -> List[WorkingHours]:
        filt = {"vendor_id": vendor_id} if vendor_id else {}
        hours = [_to_model(WorkingHours, d) for d in get_documents("workinghours", filt, database=self.db)]
        if not vendor_id and len({wh.vendor_id for wh in hours}) > 1:
            logger.warning("Working hours of several vendors read without vendor_id; pass vendor_id")
        return hours

    @_store_errors
    def list_appointments(
        self,
        vendor_id: Optional[str] = None,
        day: Optional[date] = None,
        staff_ids: Optional[Iterable[str]] = None,
        active_only: bool = False
    ) -> List[Appointment]:
        filt: Dict[str, Any] = {}
        if vendor_id:
            filt["vendor_id"] = vendor_id
        if day:
            filt["date"] = day.isoformat()
        if staff_ids is not None:
            filt["staff_id"] = {"$in": list(staff_ids)}
        if active_only:
            filt["status"] = {"$in": list(ACTIVE_APPOINTMENT_STATUSES)}
        cursor = self.db["appointment"].find(filt).sort("start_time", 1)
        return [_to_model(Appointment, d) for d in cursor]

    @_store_errors
    def insert_appointments(self, appointments: List[Appointment]) -> List[str]:
        """Store the documents of one booking; either all of them are kept or none."""
        return create_documents("appointment", appointments, database=self.db)

    def load_booking_context(self, vendor_id: Optional[str], day: date, assignments) -> BookingContext:
        """Everything the slot generator needs for one vendor, date and bundle."""
        service_ids = [a.service_id for a in assignments]
        staff_ids = {a.staff_id for a in assignments if a.staff_id is not None}

        services = self.list_services(vendor_id, ids=service_ids)
        staff = self.list_staff(vendor_id, ids=staff_ids) if staff_ids else []
        working_hours = self.list_working_hours(vendor_id)
        appointments = self.list_appointments(vendor_id, day, staff_ids, active_only=True) if staff_ids else []

        return BookingContext(
            services={s.id: s for s in services},
            roster={s.id: s for s in staff},
            working_hours=working_hours,
            appointments=appointments,
        )
