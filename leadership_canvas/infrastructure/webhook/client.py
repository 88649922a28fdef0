"""
Outbound nudge webhook.

Implements the NudgeDelivery protocol from core.canvas.ports. One POST per
nudge, no retries: the nudge is already recorded, so a failed delivery is
reported back to the coach instead of being re-attempted.
"""

import logging
from typing import Any, Optional
from urllib.parse import urlsplit

import httpx

from ...core.canvas.models import DeliveryOutcome


logger = logging.getLogger(__name__)


def safe_url(url: str) -> str:
    """Scheme and host only; webhook paths often embed tokens."""
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


class NudgeWebhookClient:
    """
    Posts nudge payloads to an operator-configured URL.

    The transport argument exists for tests (httpx.MockTransport).
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._transport = transport

    async def deliver(self, payload: dict[str, Any]) -> DeliveryOutcome:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self._url, json=payload)
        except httpx.HTTPError as e:
            error = str(e) or type(e).__name__
            logger.error(
                "Nudge webhook request failed",
                extra={
                    "url": safe_url(self._url),
                    "nudge_id": payload.get("nudge_id"),
                    "error": error,
                },
            )
            return DeliveryOutcome(sent=False, error=error)

        if response.is_success:
            logger.info(
                "Nudge webhook delivered",
                extra={"url": safe_url(self._url), "nudge_id": payload.get("nudge_id")},
            )
            return DeliveryOutcome(sent=True)

        error = f"Webhook returned status {response.status_code}"
        logger.error(
            "Nudge webhook rejected",
            extra={
                "url": safe_url(self._url),
                "nudge_id": payload.get("nudge_id"),
                "status_code": response.status_code,
            },
        )
        return DeliveryOutcome(sent=False, error=error)
