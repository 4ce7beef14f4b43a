from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from zoneinfo import ZoneInfo

from booking_engine.application.exceptions import BusinessNotFound
from booking_engine.application.ports.appointment_store import AppointmentStorePort, conflict_days
from booking_engine.application.ports.directory import DirectoryPort
from booking_engine.application.utils.clock import interval_for
from booking_engine.domain.entities.appointment import BookedSlot
from booking_engine.domain.entities.interval import Interval


class AvailabilityIndex:
    """Read-only view of who is already booked on a business day."""

    def __init__(self, store: AppointmentStorePort, directory: DirectoryPort) -> None:
        self._store = store
        self._directory = directory
        self._logger = logging.getLogger(__name__)

    def busy_intervals(
        self,
        business_id: str,
        on_date: date,
        staff_ids: list[str],
        timezone: str | ZoneInfo | None = None,
    ) -> dict[str, list[Interval]]:
        """
        Busy intervals per staff member that can touch on_date, including
        appointments from the neighbouring dates that cross midnight.
        """
        if timezone is None:
            business = self._directory.get_business(business_id)
            if business is None:
                raise BusinessNotFound(f"Business {business_id} not found")
            timezone = business.timezone

        slots = [
            slot
            for day in conflict_days(on_date)
            for slot in self._store.find_booked_slots(business_id, day, staff_ids)
        ]
        busy = group_by_staff(slots, timezone)
        self._logger.debug(
            "Loaded busy intervals",
            extra={"business_id": business_id, "date": on_date.isoformat(), "count": len(slots)},
        )
        return {staff_id: busy.get(staff_id, []) for staff_id in staff_ids}


def group_by_staff(slots: list[BookedSlot], timezone: str | ZoneInfo) -> dict[str, list[Interval]]:
    """Convert stored local slots into absolute intervals, grouped by staff member."""
    grouped: dict[str, list[Interval]] = defaultdict(list)
    for slot in slots:
        grouped[slot.staff_member_id].append(
            interval_for(slot.date, slot.start_time, slot.duration_minutes, timezone)
        )
    for intervals in grouped.values():
        intervals.sort()
    return dict(grouped)
