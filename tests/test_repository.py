"""
Tests for availability/repository.py against a stand-in for the pymongo
database object.
"""

from datetime import date

import pytest
from bson import ObjectId
from pymongo.errors import AutoReconnect, ServerSelectionTimeoutError

from availability.conflicts import overlaps
from availability.errors import DataFetchFailure
from availability.repository import MongoRepository
from schemas import AnyAvailable, Appointment, Assignment, Weekday


class FakeCursor(list):

    def sort(self, *args, **kwargs):
        return self

    def limit(self, n):
        return FakeCursor(self[:n])


class FakeCollection:

    def __init__(self, docs, error=None, fail_after=None):
        self.docs = docs
        self.error = error
        self.fail_after = fail_after
        self.filters = []
        self.inserted = []
        self.deleted = []

    def find(self, filt=None):
        if self.error:
            raise self.error
        self.filters.append(filt)
        return FakeCursor(self.docs)

    def insert_many(self, docs, ordered=True):
        for n, doc in enumerate(docs):
            if self.fail_after is not None and n == self.fail_after:
                raise AutoReconnect("connection lost mid-batch")
            self.inserted.append(doc)

    def delete_many(self, filt):
        ids = set(filt["_id"]["$in"])
        self.deleted.extend(ids)
        self.inserted = [d for d in self.inserted if d["_id"] not in ids]


class FakeDatabase(dict):

    def __missing__(self, name):
        self[name] = FakeCollection([])
        return self[name]


class TestReads:

    def test_staff_documents_become_models(self):
        oid = ObjectId()
        db = FakeDatabase(staff=FakeCollection([{
            "_id": oid,
            "name": "Ana",
            "vendor_id": "v1",
            "weekday_slots": {"monday": [{"start_minutes": 540, "end_minutes": 720}]},
            "weekday_available": {"sunday": False},
            "created_at": "ignored",
        }]))

        members = MongoRepository(db).list_staff("v1", ids=[str(oid), "not-an-object-id"])

        assert members[0].id == str(oid)
        assert members[0].weekday_slots[Weekday.monday][0].end_minutes == 720
        assert members[0].weekday_available == {Weekday.sunday: False}
        assert db["staff"].filters[0] == {"active": True, "vendor_id": "v1", "_id": {"$in": [oid]}}

    def test_appointment_query_by_day_and_staff(self):
        db = FakeDatabase(appointment=FakeCollection([{
            "_id": ObjectId(),
            "staff_id": "s1",
            "date": "2030-01-07",
            "start_time": "10:00",
            "end_time": "10:30",
            "status": "confirmed",
        }]))

        found = MongoRepository(db).list_appointments("v1", date(2030, 1, 7), ["s1"], active_only=True)

        assert found[0].date == date(2030, 1, 7)
        assert db["appointment"].filters[0] == {
            "vendor_id": "v1",
            "date": "2030-01-07",
            "staff_id": {"$in": ["s1"]},
            "status": {"$in": ["scheduled", "confirmed", "pending"]},
        }

    def test_booking_context_skips_staff_queries_for_any_available(self):
        db = FakeDatabase()
        ctx = MongoRepository(db).load_booking_context(
            "v1", date(2030, 1, 7), [Assignment(service_id=str(ObjectId()), staff=AnyAvailable())]
        )

        assert ctx.roster == {}
        assert ctx.appointments == []
        assert "staff" not in db


    def test_stored_appointments_with_unknown_status_are_read(self):
        db = FakeDatabase(appointment=FakeCollection([{
            "_id": ObjectId(),
            "staff_id": "s1",
            "date": "2030-01-07",
            "start_time": "10:00",
            "end_time": "10:30",
            "status": "no-show",
        }]))

        found = MongoRepository(db).list_appointments(day=date(2030, 1, 7))

        assert found[0].status == "no-show"
        assert not found[0].is_active

    def test_unreadable_stored_time_is_loaded_and_blocks_the_day(self):
        db = FakeDatabase(appointment=FakeCollection([{
            "_id": ObjectId(),
            "staff_id": "s1",
            "date": "2030-01-07",
            "start_time": "9:00 AM",
            "end_time": "10:00 AM",
            "status": "scheduled",
        }]))

        found = MongoRepository(db).list_appointments(None, date(2030, 1, 7), ["s1"], active_only=True)

        assert found[0].start_time == "9:00 AM"
        assert overlaps(found, date(2030, 1, 7), 15 * 60, 16 * 60, "s1")


class TestFailures:

    def test_driver_error_becomes_data_fetch_failure(self):
        db = FakeDatabase(workinghours=FakeCollection([], error=ServerSelectionTimeoutError("no servers")))

        with pytest.raises(DataFetchFailure) as exc_info:
            MongoRepository(db).list_working_hours("v1")

        assert exc_info.value.retryable

    def test_missing_database(self):
        with pytest.raises(DataFetchFailure):
            MongoRepository(None).list_services()

    def test_malformed_document_is_not_retryable(self):
        db = FakeDatabase(appointment=FakeCollection([{
            "_id": ObjectId(),
            "staff_id": "s1",
            "date": "sometime next week",
            "start_time": "10:00",
            "end_time": "10:30",
        }]))

        with pytest.raises(DataFetchFailure) as exc_info:
            MongoRepository(db).list_appointments(day=date(2030, 1, 7))

        assert not exc_info.value.retryable

    def test_hours_of_several_vendors_without_vendor_id_warn(self, caplog):
        db = FakeDatabase(workinghours=FakeCollection([
            {"vendor_id": "v1", "weekday": "monday", "start_time": "09:00", "end_time": "17:00"},
            {"vendor_id": "v2", "weekday": "monday", "start_time": "10:00", "end_time": "18:00"},
        ]))

        with caplog.at_level("WARNING", logger="availability.repository"):
            hours = MongoRepository(db).list_working_hours()

        assert len(hours) == 2
        assert "several vendors" in caplog.text


class TestWrites:

    def test_insert_stores_dates_as_iso_strings(self):
        db = FakeDatabase()
        appt = Appointment(staff_id="s1", date=date(2030, 1, 7), start_time="10:00", end_time="11:00")

        new_ids = MongoRepository(db).insert_appointments([appt])

        stored = db["appointment"].inserted[0]
        assert ObjectId.is_valid(new_ids[0])
        assert str(stored["_id"]) == new_ids[0]
        assert stored["date"] == "2030-01-07"
        assert "id" not in stored
        assert "created_at" in stored

    def test_failed_batch_leaves_nothing_behind(self):
        db = FakeDatabase(appointment=FakeCollection([], fail_after=1))
        appointments = [
            Appointment(staff_id="s1", date=date(2030, 1, 7), start_time="10:00", end_time="11:00"),
            Appointment(staff_id="s2", date=date(2030, 1, 7), start_time="10:00", end_time="11:00"),
        ]

        with pytest.raises(DataFetchFailure):
            MongoRepository(db).insert_appointments(appointments)

        assert db["appointment"].inserted == []
        assert len(db["appointment"].deleted) == 2
