from __future__ import annotations

import json
import logging
import threading
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable

from booking_engine.application.ports.appointment_store import MAX_DURATION_MINUTES
from booking_engine.application.ports.directory import DirectoryPort
from booking_engine.domain.entities.business import Business, UserContact, WorkingHours
from booking_engine.domain.entities.service import Service
from booking_engine.domain.entities.staff_member import StaffMember


class MemoryDirectory(DirectoryPort):
    """Businesses, services, staff and user contacts held in memory; staff keep insertion order."""

    def __init__(
        self,
        businesses: Iterable[Business] = (),
        users: Iterable[UserContact] = (),
        services: Iterable[Service] = (),
        staff: Iterable[StaffMember] = (),
    ) -> None:
        self._businesses = {b.id: b for b in businesses}
        self._users = {u.id: u for u in users}
        self._services = {s.id: s for s in services}
        self._staff: dict[str, StaffMember] = {m.id: m for m in staff}
        self._lock = threading.Lock()

    def add_business(self, business: Business) -> None:
        with self._lock:
            self._businesses[business.id] = business

    def add_user(self, user: UserContact) -> None:
        with self._lock:
            self._users[user.id] = user

    def put_service(self, service: Service) -> None:
        """Insert or replace a service; booked appointments keep their own snapshot."""
        with self._lock:
            self._services[service.id] = service

    def put_staff_member(self, member: StaffMember) -> None:
        with self._lock:
            self._staff[member.id] = member

    def get_business(self, business_id: str) -> Business | None:
        return self._businesses.get(business_id)

    def get_service(self, service_id: str) -> Service | None:
        return self._services.get(service_id)

    def list_active_staff_for_service(self, business_id: str, service_id: str) -> list[StaffMember]:
        with self._lock:
            members = list(self._staff.values())
        return [
            m
            for m in members
            if m.business_id == business_id and m.is_active and m.can_perform(service_id)
        ]

    def get_staff_member(self, staff_member_id: str) -> StaffMember | None:
        return self._staff.get(staff_member_id)

    def get_user_contact(self, user_id: str) -> UserContact | None:
        return self._users.get(user_id)


def load_directory(path: str | Path, default_timezone: str = "America/Mexico_City") -> MemoryDirectory:
    """
    Build a directory from a JSON seed file with top-level ``businesses``,
    ``users``, ``services`` and ``staff`` lists. Businesses without a
    ``timezone`` get default_timezone. Services whose duration is not a
    positive number of minutes up to one day are rejected with ValueError.
    """
    logger = logging.getLogger(__name__)
    with open(path, "r", encoding="utf-8") as f:
        data: dict[str, Any] = json.load(f)

    directory = MemoryDirectory(
        businesses=[_business(item, default_timezone) for item in data.get("businesses", [])],
        users=[UserContact(**item) for item in data.get("users", [])],
        services=[_service(item) for item in data.get("services", [])],
        staff=[
            StaffMember(
                id=item["id"],
                business_id=item["business_id"],
                user_id=item.get("user_id"),
                display_name=item.get("display_name", ""),
                is_active=item.get("is_active", True),
                service_ids=frozenset(item.get("service_ids", [])),
            )
            for item in data.get("staff", [])
        ],
    )
    logger.info(
        "Directory loaded",
        extra={
            "path": str(path),
            "businesses": len(data.get("businesses", [])),
            "services": len(data.get("services", [])),
            "staff": len(data.get("staff", [])),
        },
    )
    return directory


def _business(item: dict[str, Any], default_timezone: str) -> Business:
    fields = {"timezone": default_timezone, **item}
    fields["working_hours"] = tuple(WorkingHours(**hours) for hours in item.get("working_hours", []))
    return Business(**fields)


def _service(item: dict[str, Any]) -> Service:
    duration = int(item["duration_minutes"])
    if not 0 < duration <= MAX_DURATION_MINUTES:
        raise ValueError(f"Service {item['id']} has invalid duration_minutes={duration}")
    return Service(
        id=item["id"],
        business_id=item["business_id"],
        name=item["name"],
        duration_minutes=duration,
        price=Decimal(str(item["price"])),
        is_active=item.get("is_active", True),
    )
