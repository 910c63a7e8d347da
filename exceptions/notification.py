"""
Notification Exception Classes for Uptime Monitor

Raised by the notification senders when a single delivery fails.
The alert dispatcher catches these per contact.
"""

from __future__ import annotations

from typing import Any, Optional

from exceptions.base import UptimeMonitorException


class NotificationError(UptimeMonitorException):
    """
    Base Notification Exception

    Attributes:
        channel: Delivery channel (email, webhook, voice, push)
        recipient: Address, URL, number or token the delivery targeted
    """

    default_error_code = 4000
    channel: str = "unknown"

    def __init__(
        self,
        message: str = "Notification delivery failed",
        recipient: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)

        self.recipient = recipient
        self.status_code = status_code
        self.details["channel"] = self.channel

        if recipient:
            self.details["recipient"] = recipient

        if status_code is not None:
            self.details["status_code"] = status_code


class EmailDeliveryError(NotificationError):
    """SMTP delivery failure."""

    default_error_code = 4001
    channel = "email"


class WebhookDeliveryError(NotificationError):
    """Webhook POST failed or returned a non-2xx status."""

    default_error_code = 4002
    channel = "webhook"


class VoiceCallError(NotificationError):
    """Outbound voice call could not be placed."""

    default_error_code = 4003
    channel = "voice"


class PushDeliveryError(NotificationError):
    """Push relay request failed."""

    default_error_code = 4004
    channel = "push"
