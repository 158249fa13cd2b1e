"""Transactional email through SendGrid.

Keys starting with ``mock_`` switch the client to log-only mode, which is
what development and the test suite run with.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

import httpx

from soot.config import settings
from soot.integrations.base import BaseIntegration


def _is_mock() -> bool:
    return settings.SENDGRID_API_KEY.startswith("mock_")


class EmailClient(BaseIntegration):
    """Email client with real SendGrid API and mock fallback."""

    SENDGRID_URL = "https://api.sendgrid.com/v3"

    def __init__(self) -> None:
        super().__init__("sendgrid")

    async def health_check(self) -> bool:
        if _is_mock():
            self.logger.info("SendGrid health check: OK (mock)")
            return True
        try:
            async with httpx.AsyncClient(timeout=10) as client:
                resp = await client.get(
                    f"{self.SENDGRID_URL}/scopes",
                    headers={"Authorization": f"Bearer {settings.SENDGRID_API_KEY}"},
                )
                return resp.status_code == 200
        except httpx.HTTPError as e:
            self.logger.error("SendGrid health check failed: %s", e)
            return False

    async def send_email(
        self,
        to: str,
        subject: str,
        html_body: str,
        text_body: str | None = None,
        from_email: str | None = None,
    ) -> dict[str, Any]:
        sender = from_email or settings.FROM_EMAIL
        message_id = str(uuid.uuid4())
        sent_at = datetime.now(timezone.utc).isoformat()

        if _is_mock():
            self.logger.info("Mock email | from=%s | to=%s | subject='%s'", sender, to, subject)
            if text_body:
                self.logger.debug("Mock email body:\n%s", text_body)
            return {"status": "sent", "message_id": message_id, "to": to, "subject": subject, "timestamp": sent_at}

        content = [{"type": "text/html", "value": html_body}]
        if text_body:
            content.insert(0, {"type": "text/plain", "value": text_body})
        payload = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": sender},
            "subject": subject,
            "content": content,
        }

        self.logger.info("Sending email to=%s subject='%s'", to, subject)
        try:
            async with httpx.AsyncClient(timeout=30) as client:
                resp = await client.post(
                    f"{self.SENDGRID_URL}/mail/send",
                    headers={
                        "Authorization": f"Bearer {settings.SENDGRID_API_KEY}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                )
                resp.raise_for_status()
        except httpx.HTTPError as e:
            self.logger.error("SendGrid email failed: %s", e)
            return {"status": "failed", "error": str(e), "to": to}

        sg_id = resp.headers.get("X-Message-Id", message_id)
        self.logger.info("Email sent via SendGrid: %s", sg_id)
        return {"status": "sent", "message_id": sg_id, "to": to, "subject": subject, "timestamp": sent_at}
