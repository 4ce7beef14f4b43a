from __future__ import annotations

from abc import ABC, abstractmethod

from booking_engine.domain.entities.business import Business, UserContact
from booking_engine.domain.entities.service import Service
from booking_engine.domain.entities.staff_member import StaffMember


class DirectoryPort(ABC):
    @abstractmethod
    def get_business(self, business_id: str) -> Business | None:
        raise NotImplementedError

    @abstractmethod
    def get_service(self, service_id: str) -> Service | None:
        raise NotImplementedError

    @abstractmethod
    def list_active_staff_for_service(self, business_id: str, service_id: str) -> list[StaffMember]:
        """
        Active staff of the business qualified for the service, in the
        directory's stable listing order.
        """
        raise NotImplementedError

    @abstractmethod
    def get_staff_member(self, staff_member_id: str) -> StaffMember | None:
        raise NotImplementedError

    @abstractmethod
    def get_user_contact(self, user_id: str) -> UserContact | None:
        raise NotImplementedError
