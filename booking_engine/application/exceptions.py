class BookingError(RuntimeError):
    """Recoverable, caller-facing failure of a booking or status operation."""

    kind = "booking_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "message": self.message}


class ServiceNotFound(BookingError):
    """Raised when the requested service is missing, inactive or owned by another business."""
    kind = "service_not_found"


class BusinessNotFound(BookingError):
    kind = "business_not_found"


class SlotUnavailable(BookingError):
    """Raised when the explicitly requested staff member cannot take the slot."""
    kind = "slot_unavailable"


class NoStaffAvailable(BookingError):
    """Raised when no qualifying staff member is free for the slot."""
    kind = "no_staff_available"


class GuestInfoRequired(BookingError):
    """Raised when an anonymous booking is missing guest name, email or phone."""
    kind = "guest_info_required"


class InvalidBookingRequest(BookingError):
    """Raised when a booking request is malformed (bad time, both identity modes)."""
    kind = "invalid_booking_request"


class InvalidTimezone(BookingError):
    """Raised when a timezone identifier is not in the IANA database."""
    kind = "invalid_timezone"


class InvalidTransition(BookingError):
    """Raised when a status change is not an edge of the lifecycle."""
    kind = "invalid_transition"


class AppointmentNotFound(BookingError):
    kind = "appointment_not_found"


class ConcurrencyConflict(BookingError):
    """Raised when a booking lost the commit-time re-check and no fallback remained."""
    kind = "concurrency_conflict"


class StorageUnavailable(BookingError):
    """Raised when the persistence layer fails (I/O error, corrupt data)."""
    kind = "storage_unavailable"
