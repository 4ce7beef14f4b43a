from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class StaffMember:
    id: str
    business_id: str
    user_id: str | None  # login account used for in-app notifications
    display_name: str
    is_active: bool = True
    service_ids: frozenset[str] = field(default_factory=frozenset)

    def can_perform(self, service_id: str) -> bool:
        return service_id in self.service_ids
