from __future__ import annotations

from typing import Any

# template name -> (subject, body); both are str.format templates over the delivery data
TEMPLATES: dict[str, tuple[str, str]] = {
    "appointment_received": (
        "Appointment received - {business_name}",
        "Hi {customer_name}, we received your booking for {service_name} at {business_name} "
        "on {date} at {time}. Price: {price} {currency}. Reference: {appointment_id}.",
    ),
    "appointment_confirmed": (
        "Appointment confirmed - {business_name}",
        "Hi {customer_name}, your appointment for {service_name} at {business_name} "
        "on {date} at {time} is confirmed.",
    ),
    "new_appointment": (
        "New booking - {service_name}",
        "{customer_name} booked {service_name} with {staff_name} on {date} at {time}.",
    ),
    "appointment_cancelled": (
        "Appointment cancelled - {business_name}",
        "The appointment for {service_name} on {date} at {time} was cancelled by the {cancelled_by}.",
    ),
}


class _Defaults(dict):
    def __missing__(self, key: str) -> str:
        return ""


def render(template: str, data: dict[str, Any]) -> tuple[str, str]:
    """Return (subject, text) for a template; unknown templates raise KeyError."""
    subject, body = TEMPLATES[template]
    values = _Defaults({k: "" if v is None else v for k, v in data.items()})
    return subject.format_map(values), body.format_map(values)
