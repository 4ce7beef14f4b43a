from __future__ import annotations

import logging
from typing import Any

import httpx

from booking_engine.infrastructure.email.templates import render


class ResendEmailSender:
    def __init__(
        self,
        api_key: str,
        from_email: str,
        base_url: str = "https://api.resend.com",
        client: httpx.Client | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("RESEND_API_KEY is required for the Resend email sender")
        self._api_key = api_key
        self._from_email = from_email
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=10.0)
        self._logger = logging.getLogger(__name__)

    def send(self, template: str, recipient: str, data: dict[str, Any]) -> str:
        subject, text = render(template, data)
        payload = {
            "from": self._from_email,
            "to": [recipient],
            "subject": subject,
            "text": text,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}
        resp = self._client.post(f"{self._base_url}/emails", json=payload, headers=headers)
        if resp.status_code >= 400:
            try:
                error_message = resp.json().get("message")
            except Exception:
                error_message = resp.text
            self._logger.error(
                "Email send failed",
                extra={
                    "status": resp.status_code,
                    "error_message": error_message,
                    "recipient": recipient,
                    "template": template,
                },
            )
            resp.raise_for_status()

        email_id = str(resp.json().get("id", ""))
        self._logger.info("Email sent", extra={"recipient": recipient, "template": template, "email_id": email_id})
        return email_id

    def close(self) -> None:
        self._client.close()
