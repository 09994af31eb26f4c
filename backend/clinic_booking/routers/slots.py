# backend/clinic_booking/routers/slots.py
"""
Slots API endpoints.

GET /slots/{date} - slots of a day with capacity and lead-time state
"""

from fastapi import APIRouter, Depends

from ..dependencies import get_actor, get_admission
from ..schemas.slots import SlotsDayResponse
from ..services.admission import Actor, BookingAdmission

router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("/{target_date}", response_model=SlotsDayResponse)
def get_slots_day(
    target_date: str,
    actor: Actor = Depends(get_actor),
    admission: BookingAdmission = Depends(get_admission),
):
    """Available time slots for a date; closed days answer with a reason, not an error."""
    availability = admission.available_slots(target_date)
    return SlotsDayResponse.model_validate(availability)
