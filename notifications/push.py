"""
============================================================================
UPTIME MONITOR - PUSH NOTIFICATIONS
============================================================================
Organization-wide device push through an FCM relay service.

This channel is separate from the per-monitor contact dispatch: it
targets every active device token, not contact lists.
============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence

import httpx

from config.settings import PushSettings
from notifications.base import HTTPNotifier
from utils.helpers import StringHelper, TimeHelper
from utils.logger import get_logger


logger = get_logger(__name__)

INVALID_TOKEN_MARKERS = ("invalid", "not-registered")


class TokenStore(Protocol):
    async def active_tokens(self) -> List[str]: ...

    async def deactivate(self, tokens: Sequence[str]) -> int: ...


# ============================================================================
# PUSH REPORT
# ============================================================================

@dataclass
class PushReport:
    """Outcome of one push fan-out."""

    success_count: int = 0
    failure_count: int = 0
    invalid_tokens: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def attempted(self) -> int:
        return self.success_count + self.failure_count

    def to_dict(self) -> Dict[str, object]:
        return {
            "successCount": self.success_count,
            "failureCount": self.failure_count,
            "invalidTokens": len(self.invalid_tokens),
        }


# ============================================================================
# SENDERS
# ============================================================================

class RelayPushSender(HTTPNotifier):
    """
    Sends one relay request per device token.

    Tokens whose failure text mentions ``invalid`` or ``not-registered``
    are deactivated in the token store after the fan-out.
    """

    def __init__(
        self,
        settings: PushSettings,
        token_store: Optional[TokenStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.token_store = token_store
        super().__init__(settings.timeout, transport)

    async def send_push(
        self,
        tokens: Sequence[str],
        title: str,
        body: str,
        data: Optional[Dict[str, str]] = None,
    ) -> PushReport:
        report = PushReport()

        if not tokens:
            logger.info("No device tokens to send push notification to")
            return report

        headers = {"X-API-Key": self.settings.relay_api_key.get_secret_value()}

        async with self._client(headers=headers) as client:
            for token in tokens:
                error = await self._send_one(client, token, title, body, data or {})
                if error is None:
                    report.success_count += 1
                    continue

                report.failure_count += 1
                report.errors[token] = error
                logger.error(f"Failed to send via relay to token {StringHelper.mask(token, 10)}: {error}")

                if any(marker in error for marker in INVALID_TOKEN_MARKERS):
                    report.invalid_tokens.append(token)

        logger.info(
            f"Push notification sent (relay): {report.success_count} successful, "
            f"{report.failure_count} failed"
        )

        if report.invalid_tokens and self.token_store is not None:
            await self.token_store.deactivate(report.invalid_tokens)

        return report

    async def _send_one(
        self,
        client: httpx.AsyncClient,
        token: str,
        title: str,
        body: str,
        data: Dict[str, str],
    ) -> Optional[str]:
        """Returns None on success, otherwise the failure text."""
        payload = {"deviceToken": token, "title": title, "body": body, "data": data}

        try:
            response = await client.post(self.settings.relay_url, json=payload)
        except httpx.HTTPError as e:
            return str(e) or type(e).__name__

        if not response.is_success:
            return f"Relay returned {response.status_code}: {response.text}"
        return None


class DisabledPushSender:
    """Used when no relay is configured; logs and sends nothing."""

    async def send_push(
        self,
        tokens: Sequence[str],
        title: str,
        body: str,
        data: Optional[Dict[str, str]] = None,
    ) -> PushReport:
        logger.warning("Push notifications disabled (no relay configured). Skipping push notification.")
        return PushReport()


def build_push_sender(settings: PushSettings, token_store: Optional[TokenStore] = None):
    if settings.configured:
        logger.info(f"Push: using relay service at {settings.relay_url}")
        return RelayPushSender(settings, token_store=token_store)
    return DisabledPushSender()


# ============================================================================
# PUSH NOTIFIER
# ============================================================================

class PushNotifier:
    """
    Message templates for device push, addressed to every active token.
    """

    def __init__(self, sender, token_store: TokenStore):
        self.sender = sender
        self.token_store = token_store

    async def _broadcast(self, title: str, body: str, data: Dict[str, str]) -> PushReport:
        tokens = await self.token_store.active_tokens()
        return await self.sender.send_push(tokens, title, body, data)

    async def send_monitor_down_push(
        self,
        monitor_id: object,
        monitor_name: str,
        url: str,
        error: str,
    ) -> PushReport:
        return await self._broadcast(
            f"🚨 {monitor_name} is DOWN",
            f"{url} - {error}",
            {
                "type": "monitor_down",
                "monitorId": str(monitor_id),
                "monitorName": monitor_name,
                "url": url,
                "error": error,
                "timestamp": TimeHelper.isoformat(TimeHelper.utc_now()),
            },
        )

    async def send_monitor_recovery_push(
        self,
        monitor_id: object,
        monitor_name: str,
        url: str,
    ) -> PushReport:
        return await self._broadcast(
            f"✅ {monitor_name} is UP",
            f"{url} has recovered and is now operational",
            {
                "type": "monitor_recovery",
                "monitorId": str(monitor_id),
                "monitorName": monitor_name,
                "url": url,
                "timestamp": TimeHelper.isoformat(TimeHelper.utc_now()),
            },
        )

    async def send_test_push(self) -> PushReport:
        return await self._broadcast(
            "🧪 Test Notification",
            "This is a test push notification from Uptime Monitor",
            {"type": "test", "timestamp": TimeHelper.isoformat(TimeHelper.utc_now())},
        )
