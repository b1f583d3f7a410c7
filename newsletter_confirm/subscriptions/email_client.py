"""Outbound email delivery over a Postmark-style REST API."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from urllib import error, request

from ..domain import EmailAddress

logger = logging.getLogger(__name__)

POSTMARK_TOKEN_HEADER = "X-Postmark-Server-Token"


class EmailDeliveryError(Exception):
    """The email API rejected the request or could not be reached."""


@dataclass(frozen=True)
class Email:
    recipient: EmailAddress
    subject: str
    html_body: str
    text_body: str

    def as_request(self, sender: EmailAddress) -> dict[str, str]:
        return {
            "From": str(sender),
            "To": str(self.recipient),
            "Subject": self.subject,
            "HtmlBody": self.html_body,
            "TextBody": self.text_body,
        }


class EmailClient:
    """Send emails through ``<api_base_url>/email``."""

    def __init__(self, *, sender: EmailAddress, api_base_url: str, api_auth_token: str, timeout_ms: int = 10_000) -> None:
        self.sender = sender
        self.api_send_email_url = api_base_url.rstrip("/") + "/email"
        self._api_auth_token = api_auth_token
        self.timeout_ms = timeout_ms

    async def send(self, email: Email) -> None:
        await asyncio.to_thread(self._send_sync, email)

    def _send_sync(self, email: Email) -> None:
        body = json.dumps(email.as_request(self.sender)).encode("utf-8")
        req = request.Request(
            self.api_send_email_url,
            data=body,
            method="POST",
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
                POSTMARK_TOKEN_HEADER: self._api_auth_token,
            },
        )
        try:
            with request.urlopen(req, timeout=self.timeout_ms / 1000) as resp:
                status = resp.status
        except error.HTTPError as exc:
            raise EmailDeliveryError(f"email API returned {exc.code}") from exc
        except (error.URLError, TimeoutError, OSError) as exc:
            raise EmailDeliveryError(f"email API unreachable: {exc}") from exc
        if not 200 <= status < 300:
            raise EmailDeliveryError(f"email API returned {status}")
        logger.debug("email sent to %s", email.recipient)


@dataclass
class RecordingEmailClient:
    """Email client that keeps sent messages in memory."""

    outbox: list[Email] = field(default_factory=list)
    fail: bool = False

    async def send(self, email: Email) -> None:
        if self.fail:
            raise EmailDeliveryError("delivery disabled")
        self.outbox.append(email)
