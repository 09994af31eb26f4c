"""
FastAPI dependencies: caller identity and admission service wiring.

Authentication happens in the gateway; it forwards the verified identity
as X-User-Id / X-User-Role headers. This service trusts those headers.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from .database import get_db
from .services.admission import Actor, BookingAdmission
from .services.booking_store import BookingStore
from .services.locks import get_slot_locks
from .services.slots import get_booking_config

ADMIN_ROLE = "admin"


def get_actor(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Actor:
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing user identity",
        )
    return Actor(id=x_user_id, is_admin=(x_user_role or "").lower() == ADMIN_ROLE)


def get_admission(db: Session = Depends(get_db)) -> BookingAdmission:
    return BookingAdmission(
        store=BookingStore(db),
        config=get_booking_config(),
        locks=get_slot_locks(),
    )
