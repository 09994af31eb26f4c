from .booking import (
    Base,
    BookingStatus,
    Bookings,
    CANCELLABLE_STATUSES,
    STATUS_TRANSITIONS,
    can_transition,
)

__all__ = [
    "Base",
    "BookingStatus",
    "Bookings",
    "CANCELLABLE_STATUSES",
    "STATUS_TRANSITIONS",
    "can_transition",
]
