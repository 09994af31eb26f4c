"""
Pydantic schemas for slots API.
"""

from datetime import date
from typing import Optional
from pydantic import BaseModel, Field


class SlotInfo(BaseModel):
    """Information about a single slot."""
    time: str  # "HH:MM"
    booked: int
    capacity: int
    state: str = Field(description="open / full / too_soon")
    is_available: bool

    model_config = {"from_attributes": True}


class SlotsDayResponse(BaseModel):
    """Slots for one day with live booking counts."""
    date: date
    is_open: bool
    available: bool
    message: Optional[str] = None

    available_slots: list[str]
    booked_slots: list[str] = Field(description="Slots at capacity")
    bookings_per_slot: dict[str, int]
    slots: list[SlotInfo]

    model_config = {"from_attributes": True}
