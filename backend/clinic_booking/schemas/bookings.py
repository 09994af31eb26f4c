# backend/clinic_booking/schemas/bookings.py

from datetime import date, datetime
from typing import Any, Optional
from pydantic import BaseModel, Field, computed_field

# Shown to the requester as the expected examination time.
ESTIMATED_DELAY_MINUTES = 10


class BookingCreate(BaseModel):
    # Left untyped: the admission service owns date/time validation and
    # reports InvalidDate / InvalidTimeFormat for any value, null included.
    appointment_date: Any = Field(None, description="Date in YYYY-MM-DD (or ISO datetime) format")
    appointment_time: Any = Field(None, description="Time in HH:MM format")
    initial_symptoms: str = Field(min_length=1)


class BookingCancel(BaseModel):
    reason: Optional[str] = None


class BookingStatusUpdate(BaseModel):
    status: Optional[str] = None
    admin_notes: Optional[str] = None


class BookingCall(BaseModel):
    call_time: Optional[datetime] = None


class BookingRead(BaseModel):
    id: int

    requester_id: str
    appointment_date: date
    appointment_time: str
    initial_symptoms: str

    status: str
    queue_number: int
    call_time: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    admin_notes: Optional[str] = None

    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def estimated_time(self) -> str:
        hours, minutes = (int(p) for p in self.appointment_time.split(":"))
        total = hours * 60 + minutes + ESTIMATED_DELAY_MINUTES
        return f"{total // 60:02d}:{total % 60:02d}"
