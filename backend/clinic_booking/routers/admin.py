# backend/clinic_booking/routers/admin.py
# Admin surface: listing, status changes, calling the requester in.

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..dependencies import get_actor, get_admission
from ..schemas.bookings import (
    BookingCall,
    BookingRead,
    BookingStatusUpdate,
)
from ..services.admission import Actor, BookingAdmission

router = APIRouter(prefix="/admin/bookings", tags=["admin"])


@router.get("/", response_model=list[BookingRead])
def list_all_bookings(
    target_date: Optional[str] = Query(None, alias="date"),
    status: Optional[str] = None,
    actor: Actor = Depends(get_actor),
    admission: BookingAdmission = Depends(get_admission),
):
    return admission.list_all(actor, day=target_date, status=status)


@router.put("/{id}/status", response_model=BookingRead)
def update_booking_status(
    id: int,
    data: BookingStatusUpdate,
    actor: Actor = Depends(get_actor),
    admission: BookingAdmission = Depends(get_admission),
):
    return admission.update_status(id, actor, status=data.status, admin_notes=data.admin_notes)


@router.put("/{id}/call", response_model=BookingRead)
def call_requester(
    id: int,
    data: BookingCall | None = None,
    actor: Actor = Depends(get_actor),
    admission: BookingAdmission = Depends(get_admission),
):
    return admission.call_for_appointment(id, actor, data.call_time if data else None)
