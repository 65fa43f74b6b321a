"""
Database Schemas for the Salon Availability Service

Each Pydantic model maps to a MongoDB collection using the lowercase class name.
Examples:
- Service -> "service"
- Staff -> "staff"
- WorkingHours -> "workinghours"
- Appointment -> "appointment"

Times of day are vendor-local. Intervals are half-open [start, end) in minutes
from midnight.
"""

from datetime import date as Date
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from availability.duration import parse_duration

MINUTES_PER_DAY = 24 * 60

ACTIVE_APPOINTMENT_STATUSES = ("scheduled", "confirmed", "pending")


class Weekday(str, Enum):
    monday = "monday"
    tuesday = "tuesday"
    wednesday = "wednesday"
    thursday = "thursday"
    friday = "friday"
    saturday = "saturday"
    sunday = "sunday"

    @classmethod
    def of(cls, day: Date) -> "Weekday":
        return list(cls)[day.weekday()]


class TimeInterval(BaseModel):
    """Half-open minute range within a single day."""

    model_config = ConfigDict(frozen=True)

    start_minutes: int = Field(..., ge=0, le=MINUTES_PER_DAY)
    end_minutes: int = Field(..., ge=0, le=MINUTES_PER_DAY)

    @model_validator(mode="after")
    def check_order(self):
        if self.end_minutes <= self.start_minutes:
            raise ValueError("end_minutes must be after start_minutes")
        return self

    def contains(self, start: int, end: int) -> bool:
        return self.start_minutes <= start and end <= self.end_minutes


class BlockedTime(BaseModel):
    """Staff-level override removing availability for part of one date."""

    date: Date = Field(..., description="Calendar date the block applies to")
    start_minutes: int = Field(..., ge=0, le=MINUTES_PER_DAY)
    end_minutes: int = Field(..., ge=0, le=MINUTES_PER_DAY)
    reason: Optional[str] = Field(None, description="Why the staff member is unavailable")


class Service(BaseModel):
    """
    Services offered by the vendor
    Collection: service
    """
    id: str = Field(..., description="Service id")
    vendor_id: Optional[str] = Field(None, description="Owning vendor")
    name: str = Field(..., description="Service name e.g. 'Gel Manicure'")
    duration: Union[int, str] = Field(60, description="Duration label e.g. '30 min', '1 hour', or minutes")
    price: float = Field(0, ge=0, description="Price in vendor currency")
    active: bool = Field(default=True, description="Whether the service is available")

    @property
    def duration_minutes(self) -> int:
        return parse_duration(self.duration)


class Staff(BaseModel):
    """
    Vendor staff with their weekly schedule
    Collection: staff
    """
    id: str = Field(..., description="Staff id")
    vendor_id: Optional[str] = Field(None, description="Owning vendor")
    name: str = Field(..., description="Staff member name")
    active: bool = Field(default=True, description="Whether the staff member is currently active")
    weekday_slots: Dict[Weekday, List[TimeInterval]] = Field(
        default_factory=dict, description="Open intervals per weekday"
    )
    weekday_available: Dict[Weekday, bool] = Field(
        default_factory=dict, description="Explicit per-weekday availability flags; missing means not set"
    )
    blocked_times: List[BlockedTime] = Field(default_factory=list)

    @field_validator("weekday_slots")
    @classmethod
    def check_slots_sorted(cls, value: Dict[Weekday, List[TimeInterval]]):
        for weekday, intervals in value.items():
            for prev, cur in zip(intervals, intervals[1:]):
                if cur.start_minutes < prev.end_minutes:
                    raise ValueError(f"{weekday.value} slots must be sorted and non-overlapping")
        return value


class WorkingHours(BaseModel):
    """
    Vendor-wide opening hours for one weekday
    Collection: workinghours
    """
    vendor_id: Optional[str] = Field(None)
    weekday: Weekday = Field(...)
    is_available: bool = Field(default=True)
    start_time: Optional[str] = Field(None, description="Opening time HH:mm")
    end_time: Optional[str] = Field(None, description="Closing time HH:mm")


class Appointment(BaseModel):
    """
    Booked appointments, one document per staff member involved
    Collection: appointment
    """
    id: Optional[str] = Field(None)
    vendor_id: Optional[str] = Field(None)
    staff_id: Optional[str] = Field(None, description="Staff member; empty when booked as any available")
    service_ids: List[str] = Field(default_factory=list)
    date: Date = Field(..., description="Appointment date (vendor-local)")
    start_time: str = Field(..., description="Start time HH:mm as stored")
    end_time: str = Field(..., description="End time HH:mm as stored")
    status: str = Field("scheduled", description="Booking status; only scheduled, confirmed and pending hold staff time")
    notes: Optional[str] = Field(None)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_APPOINTMENT_STATUSES


# ---------- Assignments ----------

class SpecificStaff(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["specific"] = "specific"
    staff_id: str


class AnyAvailable(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["any"] = "any"


StaffChoice = Annotated[Union[SpecificStaff, AnyAvailable], Field(discriminator="kind")]


class Assignment(BaseModel):
    """Pairs one service of the bundle with a staff choice."""

    service_id: str
    staff: StaffChoice = Field(default_factory=AnyAvailable)

    @property
    def staff_id(self) -> Optional[str]:
        if isinstance(self.staff, SpecificStaff):
            return self.staff.staff_id
        return None


class FinalizedSelection(BaseModel):
    date: Date
    start_time: str
    end_time: str
    total_minutes: int
    assignments: List[Assignment]
