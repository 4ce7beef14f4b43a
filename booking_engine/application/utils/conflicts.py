from __future__ import annotations

from typing import Iterable, Mapping

from booking_engine.domain.entities.interval import Interval


def is_free(candidate: Interval, busy: Iterable[Interval]) -> bool:
    """True when none of the busy intervals overlaps the candidate (adjacent ones are fine)."""
    for interval in sorted(busy):
        if interval.start >= candidate.end:
            break
        if interval.overlaps(candidate):
            return False
    return True


def free_staff(
    candidate: Interval,
    busy_by_staff: Mapping[str, Iterable[Interval]],
    staff_ids: Iterable[str],
) -> list[str]:
    """
    Staff ids from staff_ids that can take the candidate interval.

    The result keeps the order of staff_ids and contains each id once, so
    callers can hand it straight to an assignment policy.
    """
    free: list[str] = []
    seen: set[str] = set()
    for staff_id in staff_ids:
        if staff_id in seen:
            continue
        seen.add(staff_id)
        if is_free(candidate, busy_by_staff.get(staff_id, ())):
            free.append(staff_id)
    return free
