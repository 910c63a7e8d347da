"""
Webhook alert sender: one JSON POST per destination URL.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from config.settings import WebhookSettings
from exceptions import WebhookDeliveryError
from notifications.base import HTTPNotifier
from utils.helpers import TimeHelper
from utils.logger import get_logger


logger = get_logger(__name__)


def build_webhook_payload(monitor_name: str, monitor_url: str, error_message: str) -> Dict[str, Any]:
    return {
        "event": "monitor_down",
        "monitor": monitor_name,
        "url": monitor_url,
        "status": "down",
        "error": error_message,
        "timestamp": TimeHelper.isoformat(TimeHelper.utc_now()),
    }


class HTTPWebhookSender(HTTPNotifier):
    """POSTs the down-alert payload; any non-2xx answer is a failure."""

    def __init__(
        self,
        settings: Optional[WebhookSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or WebhookSettings()
        super().__init__(self.settings.timeout, transport)

    async def send_webhook(
        self,
        url: str,
        monitor_name: str,
        monitor_url: str,
        error_message: str,
    ) -> None:
        """
        Raises:
            WebhookDeliveryError: transport failure or non-2xx status
        """
        payload = build_webhook_payload(monitor_name, monitor_url, error_message)

        try:
            async with self._client() as client:
                response = await client.post(url, json=payload)
        except httpx.HTTPError as e:
            raise WebhookDeliveryError(
                f"Webhook request to {url} failed: {e}",
                recipient=url,
                cause=e,
            ) from e

        if not response.is_success:
            raise WebhookDeliveryError(
                f"Webhook {url} returned {self.describe_response(response)}",
                recipient=url,
                status_code=response.status_code,
            )

        logger.debug(f"Webhook {url} accepted alert for {monitor_name} ({response.status_code})")
