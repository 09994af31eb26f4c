# backend/clinic_booking/services/slots/config.py
"""
Booking configuration for slot calculation.

The clinic's opening hours live in one table (weekday -> interval or None)
instead of branching code, so the policy can be reviewed and overridden
from settings in a single place.
"""

from dataclasses import dataclass, field
from datetime import datetime
from functools import lru_cache
from typing import Callable, Optional
from zoneinfo import ZoneInfo

WEEKDAY_NAMES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

# Canonical clinic hours: Monday-Friday 16:00-20:30 (last appointment
# starts at 20:30), closed on weekends.
DEFAULT_WEEKLY_HOURS: tuple[Optional[tuple[str, str]], ...] = (
    ("16:00", "20:30"),  # mon
    ("16:00", "20:30"),  # tue
    ("16:00", "20:30"),  # wed
    ("16:00", "20:30"),  # thu
    ("16:00", "20:30"),  # fri
    None,                # sat
    None,                # sun
)

Clock = Callable[[], datetime]


def time_str_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    hour, minute = value.split(":")
    return int(hour) * 60 + int(minute)


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration for the slot/booking engine.

    Attributes:
        weekly_hours: Opening interval per weekday (Monday first),
                      None for a closed day. Closing time is the start
                      of the last bookable slot.
        slot_step_minutes: Grid step in minutes (15/30/60)
        slot_capacity: Max non-cancelled bookings per slot
        min_lead_minutes: Same-day slot must start strictly later than
                          now + min_lead_minutes
        timezone: Clinic timezone used for "now" and "today"
        lang: Language for user-facing messages
    """
    weekly_hours: tuple[Optional[tuple[str, str]], ...] = DEFAULT_WEEKLY_HOURS
    slot_step_minutes: int = 30  # 15 / 30 / 60
    slot_capacity: int = 2
    min_lead_minutes: int = 30
    timezone: str = "Asia/Bangkok"
    lang: str = "en"
    lock_timeout_seconds: float = 10.0
    clock: Optional[Clock] = field(default=None, compare=False)

    def __post_init__(self):
        """Validate configuration."""
        if self.slot_step_minutes not in (15, 30, 60):
            raise ValueError(f"slot_step_minutes must be 15, 30, or 60, got {self.slot_step_minutes}")
        if len(self.weekly_hours) != 7:
            raise ValueError(f"weekly_hours must have 7 entries, got {len(self.weekly_hours)}")
        if self.slot_capacity < 1:
            raise ValueError("slot_capacity must be >= 1")
        for interval in self.weekly_hours:
            if interval is None:
                continue
            start, end = interval
            if time_str_to_minutes(start) > time_str_to_minutes(end):
                raise ValueError(f"opening interval {start}-{end} ends before it starts")
            if time_str_to_minutes(start) % self.slot_step_minutes:
                raise ValueError(f"opening time {start} is not on the {self.slot_step_minutes}-minute grid")

    def now(self) -> datetime:
        """Current naive local time in the clinic timezone."""
        if self.clock is not None:
            return self.clock()
        return datetime.now(ZoneInfo(self.timezone)).replace(tzinfo=None)


def weekly_hours_from_mapping(
    mapping: dict[str, Optional[list[str]]],
) -> tuple[Optional[tuple[str, str]], ...]:
    """
    Build the weekday table from a settings mapping.

    Keys are weekday names ("mon".."sun"); missing days keep the default.
    """
    unknown = set(mapping) - set(WEEKDAY_NAMES)
    if unknown:
        raise ValueError(f"unknown weekday keys in weekly_hours: {sorted(unknown)}")

    hours = list(DEFAULT_WEEKLY_HOURS)
    for index, name in enumerate(WEEKDAY_NAMES):
        if name not in mapping:
            continue
        interval = mapping[name]
        if not interval:
            hours[index] = None
        elif len(interval) == 2:
            hours[index] = (interval[0], interval[1])
        else:
            raise ValueError(f"weekly_hours[{name}] must be [open, close] or null")
    return tuple(hours)


@lru_cache
def get_booking_config() -> BookingConfig:
    """Get booking configuration (singleton) built from settings."""
    from ...config import settings

    weekly_hours = DEFAULT_WEEKLY_HOURS
    if settings.weekly_hours is not None:
        weekly_hours = weekly_hours_from_mapping(settings.weekly_hours)

    return BookingConfig(
        weekly_hours=weekly_hours,
        slot_capacity=settings.slot_capacity,
        min_lead_minutes=settings.min_lead_minutes,
        timezone=settings.clinic_timezone,
        lang=settings.locale,
        lock_timeout_seconds=settings.lock_timeout_seconds,
    )
