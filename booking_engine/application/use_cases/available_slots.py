"""
Slot grid for a business day: every start time inside the opening hours where
the service still fits before closing, flagged by whether it can be booked.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from booking_engine.application.exceptions import BusinessNotFound, InvalidBookingRequest
from booking_engine.application.ports.directory import DirectoryPort
from booking_engine.application.use_cases.availability import AvailabilityIndex
from booking_engine.application.use_cases.book_appointment import resolve_service
from booking_engine.application.utils.clock import interval_for, load_timezone, parse_clock, to_instant
from booking_engine.application.utils.conflicts import free_staff

SLOT_STEP_MINUTES = 30


@dataclass(frozen=True)
class SlotAvailability:
    time: str  # HH:MM, business local wall clock
    available: bool


class AvailableSlotsUseCase:
    def __init__(
        self,
        directory: DirectoryPort,
        availability: AvailabilityIndex,
        step_minutes: int = SLOT_STEP_MINUTES,
    ) -> None:
        self._directory = directory
        self._availability = availability
        self._step = step_minutes
        self._logger = logging.getLogger(__name__)

    def execute(
        self,
        business_id: str,
        on_date: date,
        service_id: str,
        staff_member_id: str | None = None,
    ) -> list[SlotAvailability]:
        business = self._directory.get_business(business_id)
        if business is None:
            raise BusinessNotFound(f"Business {business_id} not found")
        service = resolve_service(self._directory, business_id, service_id)
        tz = load_timezone(business.timezone)

        hours = business.hours_for(on_date.weekday())
        if hours is None:
            return []

        qualified_ids = [s.id for s in self._directory.list_active_staff_for_service(business_id, service_id)]
        if not qualified_ids:
            return []
        if staff_member_id is not None:
            candidates = [staff_member_id] if staff_member_id in qualified_ids else []
        else:
            candidates = qualified_ids

        closing = to_instant(on_date, hours.close, tz)
        busy = self._availability.busy_intervals(business_id, on_date, candidates, tz) if candidates else {}

        slots: list[SlotAvailability] = []
        for start_time in _grid(hours.open, hours.close, self._step):
            try:
                candidate = interval_for(on_date, start_time, service.duration_minutes, tz)
            except InvalidBookingRequest:
                # start time skipped by a daylight-saving jump
                continue
            if candidate.end > closing:
                break
            slots.append(SlotAvailability(start_time, bool(free_staff(candidate, busy, candidates))))

        self._logger.debug(
            "Built slot grid",
            extra={
                "business_id": business_id,
                "staff_member_id": staff_member_id,
                "date": on_date.isoformat(),
                "slots": len(slots),
            },
        )
        return slots


def _grid(open_time: str, close_time: str, step_minutes: int) -> list[str]:
    start = parse_clock(open_time)
    end = parse_clock(close_time)
    minute = start.hour * 60 + start.minute
    last = end.hour * 60 + end.minute
    times = []
    while minute < last:
        times.append(f"{minute // 60:02d}:{minute % 60:02d}")
        minute += step_minutes
    return times
