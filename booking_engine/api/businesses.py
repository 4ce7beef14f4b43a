from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query

from booking_engine.api.appointments import to_http_error
from booking_engine.api.schemas import SlotSchema
from booking_engine.application.exceptions import BookingError
from booking_engine.application.use_cases.available_slots import AvailableSlotsUseCase
from booking_engine.wiring.dependencies import get_available_slots_use_case

router = APIRouter()


@router.get("/businesses/{business_id}/availability", response_model=list[SlotSchema])
def business_availability(
    business_id: str,
    on_date: date = Query(alias="date"),
    service_id: str = Query(),
    staff_member_id: str | None = None,
    uc: AvailableSlotsUseCase = Depends(get_available_slots_use_case),
):
    try:
        slots = uc.execute(business_id, on_date, service_id, staff_member_id=staff_member_id)
    except BookingError as e:
        raise to_http_error(e)
    return [SlotSchema(time=s.time, available=s.available) for s in slots]
