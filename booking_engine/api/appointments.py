from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, Header, HTTPException, Query

from booking_engine.api.schemas import (
    AppointmentSchema,
    BookAppointmentSchema,
    CancelSchema,
    StatusUpdateSchema,
)
from booking_engine.application.exceptions import BookingError
from booking_engine.application.ports.appointment_store import AppointmentStorePort
from booking_engine.application.use_cases.book_appointment import BookAppointmentUseCase
from booking_engine.application.use_cases.status_lifecycle import StatusLifecycle
from booking_engine.domain.entities.appointment import AppointmentStatus
from booking_engine.domain.entities.booking_request import BookingRequest
from booking_engine.wiring.dependencies import (
    get_appointment_store,
    get_book_appointment_use_case,
    get_status_lifecycle,
)

router = APIRouter()
logger = logging.getLogger(__name__)

STATUS_CODES = {
    "service_not_found": 404,
    "business_not_found": 404,
    "appointment_not_found": 404,
    "slot_unavailable": 409,
    "no_staff_available": 409,
    "concurrency_conflict": 409,
    "invalid_transition": 409,
    "guest_info_required": 422,
    "invalid_booking_request": 422,
    "invalid_timezone": 422,
    "storage_unavailable": 503,
}


def to_http_error(error: BookingError) -> HTTPException:
    status_code = STATUS_CODES.get(error.kind, 400)
    logger.info("Booking operation rejected", extra={"reason": error.kind, "status": status_code})
    return HTTPException(status_code=status_code, detail=error.to_dict())


@router.post("/appointments", response_model=AppointmentSchema, status_code=201)
def book_appointment(
    req: BookAppointmentSchema,
    x_client_id: str | None = Header(default=None),
    uc: BookAppointmentUseCase = Depends(get_book_appointment_use_case),
):
    request = BookingRequest(
        business_id=req.business_id,
        service_id=req.service_id,
        date=req.date,
        start_time=req.start_time,
        staff_member_id=req.staff_member_id,
        client_id=x_client_id,
        guest_name=req.guest_name,
        guest_email=str(req.guest_email) if req.guest_email else None,
        guest_phone=req.guest_phone,
        client_notes=req.client_notes,
    )
    try:
        appointment = uc.execute(request)
    except BookingError as e:
        raise to_http_error(e)
    return AppointmentSchema.from_entity(appointment)


@router.patch("/appointments/{appointment_id}/status", response_model=AppointmentSchema)
def transition_status(
    appointment_id: str,
    req: StatusUpdateSchema,
    lifecycle: StatusLifecycle = Depends(get_status_lifecycle),
):
    try:
        appointment = lifecycle.transition(appointment_id, req.status)
    except BookingError as e:
        raise to_http_error(e)
    return AppointmentSchema.from_entity(appointment)


@router.post("/appointments/{appointment_id}/cancel", response_model=AppointmentSchema)
def cancel_appointment(
    appointment_id: str,
    req: CancelSchema,
    lifecycle: StatusLifecycle = Depends(get_status_lifecycle),
):
    try:
        appointment = lifecycle.cancel(appointment_id, req.initiator.value)
    except BookingError as e:
        raise to_http_error(e)
    return AppointmentSchema.from_entity(appointment)


@router.get("/appointments/mine", response_model=list[AppointmentSchema])
def my_appointments(
    x_client_id: str | None = Header(default=None),
    store: AppointmentStorePort = Depends(get_appointment_store),
):
    if not x_client_id:
        raise HTTPException(
            status_code=401,
            detail={"kind": "client_required", "message": "X-Client-Id header is required"},
        )
    try:
        appointments = store.list_appointments(client_id=x_client_id)
    except BookingError as e:
        raise to_http_error(e)
    # newest first
    return [AppointmentSchema.from_entity(a) for a in reversed(appointments)]


@router.get("/appointments/{appointment_id}", response_model=AppointmentSchema)
def get_appointment(
    appointment_id: str,
    store: AppointmentStorePort = Depends(get_appointment_store),
):
    try:
        appointment = store.get_appointment(appointment_id)
    except BookingError as e:
        raise to_http_error(e)
    if appointment is None:
        raise HTTPException(
            status_code=404,
            detail={"kind": "appointment_not_found", "message": f"Appointment {appointment_id} not found"},
        )
    return AppointmentSchema.from_entity(appointment)


@router.get("/appointments", response_model=list[AppointmentSchema])
def list_appointments(
    business_id: str,
    on_date: date | None = Query(default=None, alias="date"),
    staff_member_id: str | None = None,
    status: AppointmentStatus | None = None,
    client_id: str | None = None,
    store: AppointmentStorePort = Depends(get_appointment_store),
):
    try:
        appointments = store.list_appointments(
            business_id,
            on_date=on_date,
            staff_member_id=staff_member_id,
            status=status,
            client_id=client_id,
        )
    except BookingError as e:
        raise to_http_error(e)
    return [AppointmentSchema.from_entity(a) for a in appointments]
