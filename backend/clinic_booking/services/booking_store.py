"""
Persistence collaborator for bookings (SQLAlchemy).

The admission service only talks to the database through this class.
Driver errors are converted to StoreUnavailable; the failed transaction is
rolled back before the error leaves the store.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.booking import Bookings
from .errors import StoreUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingFilter:
    date_from: Optional[date] = None  # inclusive
    date_to: Optional[date] = None    # inclusive
    time: Optional[str] = None
    status: Optional[str] = None
    status_ne: Optional[str] = None
    requester_id: Optional[str] = None

    @classmethod
    def for_day(cls, day: date, **kwargs) -> "BookingFilter":
        return cls(date_from=day, date_to=day, **kwargs)


class BookingStore:
    def __init__(self, db: Session):
        self.db = db

    def _query(self, flt: BookingFilter):
        query = self.db.query(Bookings)
        if flt.date_from is not None:
            query = query.filter(Bookings.appointment_date >= flt.date_from)
        if flt.date_to is not None:
            query = query.filter(Bookings.appointment_date <= flt.date_to)
        if flt.time is not None:
            query = query.filter(Bookings.appointment_time == flt.time)
        if flt.status is not None:
            query = query.filter(Bookings.status == flt.status)
        if flt.status_ne is not None:
            query = query.filter(Bookings.status != flt.status_ne)
        if flt.requester_id is not None:
            query = query.filter(Bookings.requester_id == flt.requester_id)
        return query

    def _fail(self, action: str, e: SQLAlchemyError) -> StoreUnavailable:
        logger.error(f"Booking store {action} failed: {e}")
        self.db.rollback()
        return StoreUnavailable(diagnostic=f"{action}: {e.__class__.__name__}: {e}")

    # ── Read ─────────────────────────────────────────────────────────────

    def get_booking(self, booking_id: int) -> Optional[Bookings]:
        try:
            return self.db.get(Bookings, booking_id)
        except SQLAlchemyError as e:
            raise self._fail("get", e) from e

    def find_bookings(self, flt: BookingFilter) -> list[Bookings]:
        try:
            return (
                self._query(flt)
                .order_by(
                    Bookings.appointment_date,
                    Bookings.appointment_time,
                    Bookings.queue_number,
                )
                .all()
            )
        except SQLAlchemyError as e:
            raise self._fail("find", e) from e

    def count_bookings(self, flt: BookingFilter) -> int:
        try:
            return self._query(flt).count()
        except SQLAlchemyError as e:
            raise self._fail("count", e) from e

    def count_by_time(self, flt: BookingFilter) -> dict[str, int]:
        """Bookings per appointment_time matching flt."""
        try:
            rows = (
                self._query(flt)
                .with_entities(Bookings.appointment_time, func.count(Bookings.id))
                .group_by(Bookings.appointment_time)
                .all()
            )
        except SQLAlchemyError as e:
            raise self._fail("count_by_time", e) from e
        return {time_str: count for time_str, count in rows}

    # ── Write ────────────────────────────────────────────────────────────

    def insert_booking(self, data: dict) -> Bookings:
        obj = Bookings(**data)
        try:
            self.db.add(obj)
            self.db.commit()
            self.db.refresh(obj)
        except SQLAlchemyError as e:
            raise self._fail("insert", e) from e
        return obj

    def update_booking(
        self,
        booking_id: int,
        patch: dict,
        expected_status: Optional[str] = None,
    ) -> Optional[Bookings]:
        """
        Apply patch to one row in a single UPDATE.

        With expected_status the row is only updated while its status is
        still expected_status (compare-and-set); returns None when another
        request changed it first.
        """
        try:
            query = self.db.query(Bookings).filter(Bookings.id == booking_id)
            if expected_status is not None:
                query = query.filter(Bookings.status == expected_status)
            updated = query.update(patch, synchronize_session=False)
            self.db.commit()
            if not updated:
                return None
            obj = self.db.get(Bookings, booking_id)
            self.db.refresh(obj)
        except SQLAlchemyError as e:
            raise self._fail("update", e) from e
        return obj
