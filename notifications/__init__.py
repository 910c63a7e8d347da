"""
Notifications Package for Uptime Monitor

Channel senders used by the alert dispatcher (email, webhook, voice
call) and the organization-wide push channel.
"""

from notifications.mail import SMTPEmailSender, build_alert_message
from notifications.webhook import HTTPWebhookSender, build_webhook_payload
from notifications.voice import TwilioVoiceSender, build_twiml
from notifications.push import (
    DisabledPushSender,
    PushNotifier,
    PushReport,
    RelayPushSender,
    build_push_sender,
)

__all__ = [
    "SMTPEmailSender",
    "build_alert_message",
    "HTTPWebhookSender",
    "build_webhook_payload",
    "TwilioVoiceSender",
    "build_twiml",
    "DisabledPushSender",
    "PushNotifier",
    "PushReport",
    "RelayPushSender",
    "build_push_sender",
]
