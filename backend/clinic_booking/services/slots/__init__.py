# backend/clinic_booking/services/slots/__init__.py
"""
Slots calculation module.

Opening hours come from one weekday table (BookingConfig.weekly_hours);
per-slot state is computed on the fly from live booking counts.
"""

from .config import BookingConfig, get_booking_config
from .calendar import (
    DayAvailability,
    DayPolicy,
    SlotState,
    candidate_slots,
    day_availability,
    day_policy,
    is_past_or_too_soon,
    parse_date,
    parse_time,
)

__all__ = [
    "BookingConfig",
    "get_booking_config",
    "DayAvailability",
    "DayPolicy",
    "SlotState",
    "candidate_slots",
    "day_availability",
    "day_policy",
    "is_past_or_too_soon",
    "parse_date",
    "parse_time",
]
