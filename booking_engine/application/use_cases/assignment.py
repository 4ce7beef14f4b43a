"""
Staff assignment policies for bookings that do not name a staff member.

A policy is a pure function of the free staff list (in directory listing
order) and, for load-aware policies, the day's assignment counts. The same
inputs always give the same pick, so a retry after a lost commit race is
reproducible.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping


class AssignmentPolicy(ABC):
    name: str = ""
    requires_load_counts: bool = False

    @abstractmethod
    def choose(self, free_staff_ids: list[str], assigned_counts: Mapping[str, int] | None = None) -> str:
        raise NotImplementedError


class FirstAvailablePolicy(AssignmentPolicy):
    """First free staff member in listing order."""

    name = "first_available"

    def choose(self, free_staff_ids: list[str], assigned_counts: Mapping[str, int] | None = None) -> str:
        if not free_staff_ids:
            raise ValueError("Cannot assign from an empty free-staff list")
        return free_staff_ids[0]


class LeastLoadedPolicy(AssignmentPolicy):
    """Fewest non-cancelled appointments that day; ties go to listing order."""

    name = "least_loaded"
    requires_load_counts = True

    def choose(self, free_staff_ids: list[str], assigned_counts: Mapping[str, int] | None = None) -> str:
        if not free_staff_ids:
            raise ValueError("Cannot assign from an empty free-staff list")
        counts = assigned_counts or {}
        ranked = sorted(enumerate(free_staff_ids), key=lambda pair: (counts.get(pair[1], 0), pair[0]))
        return ranked[0][1]


_POLICIES: dict[str, type[AssignmentPolicy]] = {
    FirstAvailablePolicy.name: FirstAvailablePolicy,
    LeastLoadedPolicy.name: LeastLoadedPolicy,
}


def get_policy(name: str) -> AssignmentPolicy:
    key = (name or "").strip().lower()
    if key not in _POLICIES:
        raise ValueError(f"Unknown assignment policy {name!r}; expected one of {sorted(_POLICIES)}")
    return _POLICIES[key]()
