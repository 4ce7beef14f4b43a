from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from booking_engine.domain.entities.appointment import Appointment, CancellationInitiator


class LifecycleEventKind(str, Enum):
    BOOKING_CREATED = "booking_created"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Channel(str, Enum):
    EMAIL = "email"
    IN_APP = "in_app"


class RecipientRole(str, Enum):
    CUSTOMER = "customer"
    OWNER = "owner"
    STAFF = "staff"


@dataclass(frozen=True)
class LifecycleEvent:
    kind: LifecycleEventKind
    appointment: Appointment
    initiator: CancellationInitiator | None = None


@dataclass(frozen=True)
class Delivery:
    channel: Channel
    role: RecipientRole
    recipient: str  # email address for EMAIL, user id for IN_APP
    template: str  # email template name or in-app notification type
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class InAppNotification:
    id: str
    user_id: str
    type: str
    title: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    is_read: bool = False
