from __future__ import annotations

from dataclasses import dataclass

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass(frozen=True)
class WorkingHours:
    day: str  # lowercase weekday name, e.g. "monday"
    open: str  # HH:MM, business local wall clock
    close: str  # HH:MM, business local wall clock
    is_open: bool = True


@dataclass(frozen=True)
class Business:
    id: str
    name: str
    owner_id: str
    timezone: str  # IANA name, e.g. "America/Mexico_City"
    currency: str = "MXN"
    address: str | None = None
    working_hours: tuple[WorkingHours, ...] = ()

    def hours_for(self, weekday: int) -> WorkingHours | None:
        """Opening hours for a date.weekday() value; None when closed."""
        day = WEEKDAYS[weekday]
        for hours in self.working_hours:
            if hours.day == day and hours.is_open:
                return hours
        return None


@dataclass(frozen=True)
class UserContact:
    id: str
    email: str | None
    first_name: str = ""
    last_name: str = ""
    phone: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
