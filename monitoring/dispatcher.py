"""
============================================================================
UPTIME MONITOR - ALERT DISPATCHER
============================================================================
Sends one down-alert per resolved contact per channel.

Channels run in a fixed order: email, webhook, voice call. Every
delivery is isolated; a failing address, URL or number is logged and
the remaining contacts are still attempted. Delivery is not retried.
============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from config.constants import AlertChannel, Defaults
from monitoring.contacts import ResolvedContacts
from monitoring.interfaces import EmailSender, MonitorRecord, VoiceCallSender, WebhookSender
from monitoring.prober import CheckResult
from utils.logger import get_logger


logger = get_logger(__name__)


# ============================================================================
# DISPATCH REPORT
# ============================================================================

@dataclass
class DeliveryOutcome:
    """Result of one send to one recipient."""

    channel: AlertChannel
    recipient: str
    success: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "channel": self.channel.value,
            "recipient": self.recipient,
            "success": self.success,
        }
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class DispatchReport:
    """Per-contact delivery outcomes for one alert."""

    monitor_id: Any
    deliveries: List[DeliveryOutcome] = field(default_factory=list)
    skipped_channels: List[AlertChannel] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.deliveries)

    @property
    def sent(self) -> int:
        return sum(1 for outcome in self.deliveries if outcome.success)

    @property
    def failed(self) -> int:
        return self.attempted - self.sent

    def for_channel(self, channel: AlertChannel) -> List[DeliveryOutcome]:
        return [outcome for outcome in self.deliveries if outcome.channel == channel]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "monitorId": self.monitor_id,
            "attempted": self.attempted,
            "sent": self.sent,
            "failed": self.failed,
            "skippedChannels": [channel.value for channel in self.skipped_channels],
            "deliveries": [outcome.to_dict() for outcome in self.deliveries],
        }


# ============================================================================
# ALERT DISPATCHER
# ============================================================================

class AlertDispatcher:
    """
    Fans a down-alert out to every resolved contact.

    Parameters
    ----------
    email_sender, webhook_sender, voice_sender
        Channel senders. A channel whose sender is None is skipped.
    """

    def __init__(
        self,
        email_sender: Optional[EmailSender] = None,
        webhook_sender: Optional[WebhookSender] = None,
        voice_sender: Optional[VoiceCallSender] = None,
    ):
        self.email_sender = email_sender
        self.webhook_sender = webhook_sender
        self.voice_sender = voice_sender

    async def dispatch(
        self,
        monitor: MonitorRecord,
        contacts: ResolvedContacts,
        result: CheckResult,
    ) -> DispatchReport:
        """
        Send the down-alert for *monitor* to *contacts*.

        Returns
        -------
        DispatchReport
            Never raises for delivery failures.
        """
        error_message = result.error or Defaults.UNKNOWN_ERROR
        report = DispatchReport(monitor_id=monitor.id)

        if self.email_sender is not None:
            sender = self.email_sender
            await self._deliver_all(
                report,
                AlertChannel.EMAIL,
                contacts.emails,
                lambda to: sender.send_email(to, monitor.name, monitor.url, error_message),
            )
        elif contacts.emails:
            report.skipped_channels.append(AlertChannel.EMAIL)

        if self.webhook_sender is not None:
            sender = self.webhook_sender
            await self._deliver_all(
                report,
                AlertChannel.WEBHOOK,
                contacts.webhooks,
                lambda hook: sender.send_webhook(hook, monitor.name, monitor.url, error_message),
            )
        elif contacts.webhooks:
            report.skipped_channels.append(AlertChannel.WEBHOOK)

        if self.voice_sender is not None:
            sender = self.voice_sender
            await self._deliver_all(
                report,
                AlertChannel.VOICE,
                contacts.phones,
                lambda phone: sender.send_voice_call(phone, monitor.name, monitor.url),
            )
        elif contacts.phones:
            report.skipped_channels.append(AlertChannel.VOICE)

        for channel in report.skipped_channels:
            logger.warning(f"No {channel.value} sender configured; skipped for monitor {monitor.id}")

        logger.info(
            f"Alert dispatch for monitor {monitor.id}: "
            f"{report.sent}/{report.attempted} delivered"
        )
        return report

    async def _deliver_all(
        self,
        report: DispatchReport,
        channel: AlertChannel,
        recipients: Sequence[str],
        send: Callable[[str], Awaitable[None]],
    ) -> None:
        for recipient in recipients:
            try:
                await send(recipient)
            except Exception as e:
                logger.error(f"Failed to send {channel.value} alert to {recipient}: {e}")
                report.deliveries.append(
                    DeliveryOutcome(channel, recipient, success=False, error=str(e))
                )
            else:
                logger.info(f"Alert {channel.value} sent to {recipient}")
                report.deliveries.append(DeliveryOutcome(channel, recipient, success=True))
