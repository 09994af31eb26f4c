# backend/clinic_booking/routers/bookings.py
# Requester surface. Bookings are never deleted: DELETE = 405

from fastapi import APIRouter, Depends, HTTPException, status

from ..dependencies import get_actor, get_admission
from ..schemas.bookings import (
    BookingCancel,
    BookingCreate,
    BookingRead,
)
from ..services.admission import Actor, BookingAdmission

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("/", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    actor: Actor = Depends(get_actor),
    admission: BookingAdmission = Depends(get_admission),
):
    return admission.submit(
        actor,
        data.appointment_date,
        data.appointment_time,
        data.initial_symptoms,
    )


@router.get("/", response_model=list[BookingRead])
def list_own_bookings(
    actor: Actor = Depends(get_actor),
    admission: BookingAdmission = Depends(get_admission),
):
    return admission.list_own(actor)


@router.get("/{id}", response_model=BookingRead)
def get_booking(
    id: int,
    actor: Actor = Depends(get_actor),
    admission: BookingAdmission = Depends(get_admission),
):
    return admission.get_booking(id, actor)


@router.put("/{id}/cancel", response_model=BookingRead)
def cancel_booking(
    id: int,
    data: BookingCancel | None = None,
    actor: Actor = Depends(get_actor),
    admission: BookingAdmission = Depends(get_admission),
):
    return admission.cancel(id, actor, data.reason if data else None)


@router.delete("/{id}")
def delete_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )
