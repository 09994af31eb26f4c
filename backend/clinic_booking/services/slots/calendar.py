# backend/clinic_booking/services/slots/calendar.py
"""
Schedule calendar: which slots exist on a date and which are open.

Pure functions of (date, now, config). Booking counts are passed in by
the caller, so nothing here touches the database.

Slot states:
  open      bookable
  full      slot_capacity non-cancelled bookings already exist
  too_soon  date in the past, or today and not strictly more than
            min_lead_minutes ahead of now
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from ...i18n import t
from ..errors import InvalidDate, InvalidTimeFormat
from .config import BookingConfig, get_booking_config, minutes_to_time_str, time_str_to_minutes

TIME_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")

SLOT_OPEN = "open"
SLOT_FULL = "full"
SLOT_TOO_SOON = "too_soon"


@dataclass(frozen=True)
class DayPolicy:
    is_open: bool
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    slot_step_minutes: int = 30


@dataclass(frozen=True)
class SlotState:
    time: str
    booked: int
    capacity: int
    state: str

    @property
    def is_available(self) -> bool:
        return self.state == SLOT_OPEN


@dataclass
class DayAvailability:
    date: date
    is_open: bool
    message: Optional[str] = None
    slots: list[SlotState] = field(default_factory=list)

    @property
    def available(self) -> bool:
        return any(s.is_available for s in self.slots)

    @property
    def available_slots(self) -> list[str]:
        return [s.time for s in self.slots if s.is_available]

    @property
    def booked_slots(self) -> list[str]:
        """Slots at capacity."""
        return [s.time for s in self.slots if s.booked >= s.capacity]

    @property
    def bookings_per_slot(self) -> dict[str, int]:
        return {s.time: s.booked for s in self.slots if s.booked}


def day_policy(target_date: date, config: BookingConfig | None = None) -> DayPolicy:
    """Look up opening hours for target_date's weekday."""
    config = config or get_booking_config()
    interval = config.weekly_hours[target_date.weekday()]  # 0 = Monday
    if interval is None:
        return DayPolicy(is_open=False, slot_step_minutes=config.slot_step_minutes)
    return DayPolicy(
        is_open=True,
        open_time=interval[0],
        close_time=interval[1],
        slot_step_minutes=config.slot_step_minutes,
    )


def candidate_slots(target_date: date, config: BookingConfig | None = None) -> list[str]:
    """
    All slot start times for target_date, ascending.

    Closing time is inclusive: 16:00-20:30 yields 16:00 ... 20:30.
    """
    policy = day_policy(target_date, config)
    if not policy.is_open:
        return []

    start_min = time_str_to_minutes(policy.open_time)
    end_min = time_str_to_minutes(policy.close_time)

    slots = []
    t_min = start_min
    while t_min <= end_min:
        slots.append(minutes_to_time_str(t_min))
        t_min += policy.slot_step_minutes
    return slots


def is_past_or_too_soon(
    target_date: date,
    time_str: str,
    now: datetime,
    config: BookingConfig | None = None,
) -> bool:
    """True if the slot is in the past or inside the same-day lead time."""
    config = config or get_booking_config()
    today = now.date()

    if target_date < today:
        return True
    if target_date > today:
        return False

    slot_dt = datetime.combine(target_date, datetime.min.time()) + timedelta(
        minutes=time_str_to_minutes(time_str)
    )
    return slot_dt - now <= timedelta(minutes=config.min_lead_minutes)


def parse_date(raw, config: BookingConfig | None = None) -> date:
    """
    Normalize a requested date to a calendar date (time of day dropped).

    Accepts date, datetime, "YYYY-MM-DD" or an ISO datetime string.
    Timezone-aware datetimes are converted to clinic time first.
    Anything else raises InvalidDate.
    """
    config = config or get_booking_config()

    if isinstance(raw, datetime):
        return _local_date(raw, config)
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str):
        raise InvalidDate(lang=config.lang, diagnostic=f"unsupported type {type(raw).__name__}")

    value = raw.strip()
    if not value:
        raise InvalidDate(lang=config.lang, diagnostic="empty date")

    try:
        if "T" not in value and " " not in value:
            return date.fromisoformat(value)
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        return _local_date(datetime.fromisoformat(value), config)
    except ValueError as e:
        raise InvalidDate(lang=config.lang, diagnostic=str(e)) from None


def parse_time(raw, config: BookingConfig | None = None) -> str:
    """
    Validate "HH:MM" (24-hour) and return it zero-padded.

    Grid alignment is not checked here; off-grid times are rejected
    against candidate_slots().
    """
    config = config or get_booking_config()

    if not isinstance(raw, str):
        raise InvalidTimeFormat(lang=config.lang)

    m = TIME_RE.match(raw.strip())
    if not m:
        raise InvalidTimeFormat(lang=config.lang)

    return f"{int(m.group(1)):02d}:{m.group(2)}"


def day_availability(
    target_date: date,
    counts: dict[str, int],
    now: datetime,
    config: BookingConfig | None = None,
) -> DayAvailability:
    """
    Per-slot state for a day.

    Args:
        counts: non-cancelled bookings per "HH:MM" on target_date
    """
    config = config or get_booking_config()
    policy = day_policy(target_date, config)

    if not policy.is_open:
        return DayAvailability(
            date=target_date,
            is_open=False,
            message=t("slots:closed_day", config.lang, weekday_name(target_date, config.lang)),
        )

    slots = []
    for time_str in candidate_slots(target_date, config):
        booked = counts.get(time_str, 0)
        if is_past_or_too_soon(target_date, time_str, now, config):
            state = SLOT_TOO_SOON
        elif booked >= config.slot_capacity:
            state = SLOT_FULL
        else:
            state = SLOT_OPEN
        slots.append(SlotState(
            time=time_str,
            booked=booked,
            capacity=config.slot_capacity,
            state=state,
        ))

    result = DayAvailability(date=target_date, is_open=True, slots=slots)
    if not result.available:
        result.message = t("slots:no_free_slots", config.lang)
    return result


def weekday_name(target_date: date, lang: str | None = None) -> str:
    return t(f"weekday:{target_date.weekday()}", lang)


def _local_date(value: datetime, config: BookingConfig) -> date:
    if value.tzinfo is not None:
        value = value.astimezone(ZoneInfo(config.timezone))
    return value.date()
