from sqlalchemy import Column, Date, DateTime, Index, Integer, Text, text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class BookingStatus:
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    ALL = (PENDING, CONFIRMED, IN_PROGRESS, COMPLETED, CANCELLED)


# Forward-only edges; completed and cancelled have none.
STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
    BookingStatus.PENDING: frozenset({
        BookingStatus.CONFIRMED,
        BookingStatus.IN_PROGRESS,
        BookingStatus.CANCELLED,
    }),
    BookingStatus.CONFIRMED: frozenset({
        BookingStatus.IN_PROGRESS,
        BookingStatus.CANCELLED,
    }),
    BookingStatus.IN_PROGRESS: frozenset({BookingStatus.COMPLETED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

CANCELLABLE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})


def can_transition(current: str, target: str) -> bool:
    return target in STATUS_TRANSITIONS.get(current, frozenset())


class Bookings(Base):
    __tablename__ = 'bookings'
    __table_args__ = (
        Index('ix_bookings_slot', 'appointment_date', 'appointment_time', 'status'),
        Index('ix_bookings_requester', 'requester_id'),
    )

    id = Column(Integer, primary_key=True)
    requester_id = Column(Text, nullable=False)
    appointment_date = Column(Date, nullable=False)
    appointment_time = Column(Text, nullable=False)
    initial_symptoms = Column(Text, nullable=False)
    status = Column(Text, nullable=False, server_default=text("'pending'"))
    queue_number = Column(Integer, nullable=False)
    call_time = Column(DateTime)
    cancel_reason = Column(Text)
    admin_notes = Column(Text)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)
