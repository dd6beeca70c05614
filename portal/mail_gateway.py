# portal/mail_gateway.py
"""
Mail Gateway

Renders a reading into the HTML email and sends it through the Resend API.

Delivery is best-effort: the customer already paid and the reading is
already generated, so a failed send is logged and reported as
`delivered=False` instead of failing the request.
"""

from __future__ import annotations

import html
import logging
from typing import Any, Dict, Optional

import httpx

from .config import settings
from .errors import DeliveryError
from .models import RequestRecord

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"

EMAIL_TEMPLATE = """
<div style="background:#050512;padding:24px;color:#f4ecff;font-family:Arial,sans-serif;">
  <div style="max-width:720px;margin:0 auto;background:#11111f;padding:24px;border-radius:16px;border:1px solid #6d34ff;">
    <h2 style="text-align:center;color:#e9d6ff;margin-top:0;">{title}</h2>
    <p style="text-align:center;color:#c9b8ff;">Tu lectura ha sido canalizada con amor.</p>
    <div style="line-height:1.7;font-size:14px;">{body}</div>
  </div>
  <p style="margin-top:20px;text-align:center;font-size:12px;color:#aaa;">
    Portal Akáshico ✨
  </p>
</div>
"""


def text_to_html(text: str) -> str:
    """Escape &, < and > and turn newlines into <br/>."""
    return html.escape(text, quote=False).replace("\n", "<br/>")


def render_email(title: str, text: str) -> str:
    return EMAIL_TEMPLATE.format(title=title, body=text_to_html(text))


class MailGateway:
    def __init__(
        self,
        api_key: Optional[str] = None,
        sender: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key or settings.RESEND_API_KEY
        self.sender = sender or settings.EMAIL_FROM
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        self.transport = transport

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self.api_key or not self.sender:
            raise DeliveryError("Resend is not configured (RESEND_API_KEY / EMAIL_FROM).")

        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(RESEND_API_URL, json=payload, headers=headers)
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise DeliveryError(str(exc)) from exc

        try:
            data = resp.json()
        except ValueError:
            return {"raw": resp.text}
        if not isinstance(data, dict):
            return {"raw": resp.text}
        return data

    async def send(self, record: RequestRecord, title: str, subject: str, text: str) -> bool:
        """
        Email the reading to `record.email`. Returns whether it was accepted.
        """
        payload = {
            "from": self.sender,
            "to": [record.email],
            "subject": subject,
            "html": render_email(title, text),
        }

        try:
            data = await self._post(payload)
        except DeliveryError as exc:
            logger.warning("Email to %s not delivered: %s", record.email, exc.message)
            return False

        logger.info("Reading emailed to %s (resend id=%s)", record.email, data.get("id"))
        return True
