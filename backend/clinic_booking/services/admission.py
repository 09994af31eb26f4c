"""
Booking admission: the single entry point that validates, admits and
transitions bookings.

submit() order matters:
  1. time syntax            InvalidTimeFormat
  2. date normalization     InvalidDate
  3. clinic open that day   ClinicClosed
  4. time on the day grid   SlotNotInGrid
  5. lead time / past       TooLateOrPast
  -- store access starts here, under the per-date lock --
  6. slot capacity          SlotFull
  7. same requester & slot  DuplicateBooking
  8. queue number = non-cancelled bookings that day + 1
  9. insert (status=pending)

Notifications are sent after the write commits, through a failure
boundary: dispatch errors are logged and never change the result.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from ..models.booking import (
    CANCELLABLE_STATUSES,
    BookingStatus,
    Bookings,
    can_transition,
)
from ..i18n import t
from .booking_store import BookingFilter, BookingStore
from .errors import (
    ClinicClosed,
    DuplicateBooking,
    Forbidden,
    InvalidTransition,
    NotFound,
    SlotFull,
    SlotNotInGrid,
    TooLateOrPast,
)
from .events import emit_event
from .locks import SlotLocks, get_slot_locks
from .slots.calendar import (
    DayAvailability,
    candidate_slots,
    day_availability,
    day_policy,
    is_past_or_too_soon,
    parse_date,
    parse_time,
    weekday_name,
)
from .slots.config import BookingConfig, get_booking_config

logger = logging.getLogger(__name__)

Notifier = Callable[[str, dict], None]


@dataclass(frozen=True)
class Actor:
    """Authenticated caller, as supplied by the gateway."""
    id: str
    is_admin: bool = False


class BookingAdmission:
    def __init__(
        self,
        store: BookingStore,
        config: BookingConfig | None = None,
        locks: SlotLocks | None = None,
        notify: Notifier | None = None,
    ):
        self.store = store
        self.config = config or get_booking_config()
        self.locks = locks if locks is not None else get_slot_locks()
        self.notify = notify or emit_event

    @property
    def lang(self) -> str:
        return self.config.lang

    # ── Admission ────────────────────────────────────────────────────────

    def submit(
        self,
        actor: Actor,
        appointment_date,
        appointment_time,
        initial_symptoms: str,
    ) -> Bookings:
        config = self.config

        time_str = parse_time(appointment_time, config)
        day = parse_date(appointment_date, config)

        policy = day_policy(day, config)
        if not policy.is_open:
            self._reject(actor, day, time_str, "ClinicClosed")
            raise ClinicClosed(weekday_name(day, self.lang), lang=self.lang)

        if time_str not in candidate_slots(day, config):
            self._reject(actor, day, time_str, "SlotNotInGrid")
            raise SlotNotInGrid(time_str, policy.open_time, policy.close_time, lang=self.lang)

        now = config.now()
        if is_past_or_too_soon(day, time_str, now, config):
            self._reject(actor, day, time_str, "TooLateOrPast")
            raise TooLateOrPast(config.min_lead_minutes, lang=self.lang)

        with self.locks.hold(day):
            slot_count = self.store.count_bookings(BookingFilter.for_day(
                day, time=time_str, status_ne=BookingStatus.CANCELLED,
            ))
            if slot_count >= config.slot_capacity:
                self._reject(actor, day, time_str, "SlotFull")
                raise SlotFull(config.slot_capacity, lang=self.lang)

            own_count = self.store.count_bookings(BookingFilter.for_day(
                day,
                time=time_str,
                status_ne=BookingStatus.CANCELLED,
                requester_id=actor.id,
            ))
            if own_count:
                self._reject(actor, day, time_str, "DuplicateBooking")
                raise DuplicateBooking(lang=self.lang)

            day_count = self.store.count_bookings(BookingFilter.for_day(
                day, status_ne=BookingStatus.CANCELLED,
            ))

            booking = self.store.insert_booking({
                "requester_id": actor.id,
                "appointment_date": day,
                "appointment_time": time_str,
                "initial_symptoms": initial_symptoms,
                "status": BookingStatus.PENDING,
                "queue_number": day_count + 1,
                "created_at": now,
                "updated_at": now,
            })

        logger.info(
            f"Booking admitted: booking_id={booking.id}, requester={actor.id}, "
            f"slot={day.isoformat()} {time_str}, queue_number={booking.queue_number}"
        )
        self._dispatch("booking_created", booking, initiated_by=actor.id)
        return booking

    # ── Transitions ──────────────────────────────────────────────────────

    def cancel(
        self,
        booking_id: int,
        actor: Actor,
        reason: Optional[str] = None,
    ) -> Bookings:
        booking = self._load(booking_id)
        self._check_access(booking, actor)

        if booking.status not in CANCELLABLE_STATUSES:
            raise InvalidTransition(booking.status, BookingStatus.CANCELLED, lang=self.lang)

        updated = self._transition(booking, {
            "status": BookingStatus.CANCELLED,
            "cancel_reason": reason or t("booking:default_cancel_reason", self.lang),
        }, target=BookingStatus.CANCELLED)

        logger.info(f"Booking cancelled: booking_id={booking_id}, by={actor.id}")
        self._dispatch(
            "booking_cancelled",
            updated,
            initiated_by=actor.id,
            cancel_reason=updated.cancel_reason,
        )
        return updated

    def call_for_appointment(
        self,
        booking_id: int,
        actor: Actor,
        call_time: Optional[datetime] = None,
    ) -> Bookings:
        """Admin calls the requester in: records call_time, moves to in-progress."""
        self._require_admin(actor)
        booking = self._load(booking_id)

        current = booking.status
        if current != BookingStatus.IN_PROGRESS and not can_transition(current, BookingStatus.IN_PROGRESS):
            raise InvalidTransition(current, BookingStatus.IN_PROGRESS, lang=self.lang)

        call_time = self._local(call_time) if call_time else self.config.now()
        updated = self._transition(booking, {
            "status": BookingStatus.IN_PROGRESS,
            "call_time": call_time,
        }, target=BookingStatus.IN_PROGRESS)

        logger.info(f"Requester called: booking_id={booking_id}, call_time={call_time.isoformat()}")
        self._dispatch("booking_called", updated, call_time=call_time.isoformat())
        return updated

    def update_status(
        self,
        booking_id: int,
        actor: Actor,
        status: Optional[str] = None,
        admin_notes: Optional[str] = None,
    ) -> Bookings:
        """Admin moves a booking along the state machine and/or records notes."""
        self._require_admin(actor)
        booking = self._load(booking_id)

        if status == BookingStatus.CANCELLED and booking.status != BookingStatus.CANCELLED:
            # same reason default and event as a requester cancel
            booking = self.cancel(booking_id, actor)
            if admin_notes is None:
                return booking

        patch = {}
        changes_status = status is not None and status != booking.status
        if changes_status:
            if not can_transition(booking.status, status):
                raise InvalidTransition(booking.status, status, lang=self.lang)
            patch["status"] = status
        if admin_notes is not None:
            patch["admin_notes"] = admin_notes

        if not patch:
            return booking

        previous = booking.status
        updated = self._transition(booking, patch, target=status if changes_status else previous)

        if changes_status:
            logger.info(f"Booking status changed: booking_id={booking_id}, {previous} -> {status}")
            self._dispatch("booking_status_changed", updated, previous_status=previous)
        return updated

    # ── Queries ──────────────────────────────────────────────────────────

    def get_booking(self, booking_id: int, actor: Actor) -> Bookings:
        booking = self._load(booking_id)
        self._check_access(booking, actor)
        return booking

    def list_own(self, actor: Actor) -> list[Bookings]:
        """All of the actor's bookings, cancelled included (history view)."""
        return self.store.find_bookings(BookingFilter(requester_id=actor.id))

    def list_all(
        self,
        actor: Actor,
        day=None,
        status: Optional[str] = None,
    ) -> list[Bookings]:
        self._require_admin(actor)
        flt = BookingFilter(status=status)
        if day is not None:
            flt = BookingFilter.for_day(parse_date(day, self.config), status=status)
        return self.store.find_bookings(flt)

    def available_slots(self, raw_date) -> DayAvailability:
        day = parse_date(raw_date, self.config)
        now = self.config.now()

        counts: dict[str, int] = {}
        if day_policy(day, self.config).is_open:
            counts = self.store.count_by_time(
                BookingFilter.for_day(day, status_ne=BookingStatus.CANCELLED)
            )
        return day_availability(day, counts, now, self.config)

    # ── Helpers ──────────────────────────────────────────────────────────

    def _load(self, booking_id: int) -> Bookings:
        booking = self.store.get_booking(booking_id)
        if booking is None:
            raise NotFound(lang=self.lang)
        return booking

    def _check_access(self, booking: Bookings, actor: Actor) -> None:
        if actor.is_admin or booking.requester_id == actor.id:
            return
        logger.warning(f"Access denied: booking_id={booking.id}, actor={actor.id}")
        raise Forbidden(lang=self.lang)

    def _require_admin(self, actor: Actor) -> None:
        if not actor.is_admin:
            logger.warning(f"Admin operation denied for actor={actor.id}")
            raise Forbidden(lang=self.lang)

    def _transition(self, booking: Bookings, patch: dict, target: str) -> Bookings:
        """Single-row compare-and-set on the status read by the caller."""
        expected = booking.status
        patch = {**patch, "updated_at": self.config.now()}
        updated = self.store.update_booking(booking.id, patch, expected_status=expected)
        if updated is None:
            # a concurrent request moved the booking first
            current = self._load(booking.id)
            raise InvalidTransition(current.status, target, lang=self.lang)
        return updated

    def _local(self, value: datetime) -> datetime:
        if value.tzinfo is not None:
            value = value.astimezone(ZoneInfo(self.config.timezone)).replace(tzinfo=None)
        return value

    def _reject(self, actor: Actor, day: date, time_str: str, kind: str) -> None:
        logger.info(
            f"Booking rejected: kind={kind}, requester={actor.id}, "
            f"slot={day.isoformat()} {time_str}"
        )

    def _dispatch(self, event_type: str, booking: Bookings, **extra) -> None:
        payload = {
            "booking_id": booking.id,
            "requester_id": booking.requester_id,
            "appointment_date": booking.appointment_date.isoformat(),
            "appointment_time": booking.appointment_time,
            "queue_number": booking.queue_number,
            "status": booking.status,
            **extra,
        }
        try:
            self.notify(event_type, payload)
        except Exception:
            logger.exception(f"Notification dispatch failed: {event_type} booking_id={booking.id}")
