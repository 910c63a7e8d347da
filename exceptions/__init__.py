"""
Exceptions Package for Uptime Monitor

Provides the exception hierarchy used by the storage layer,
the validators and the notification senders.
"""

from exceptions.base import (
    UptimeMonitorException,
    ConfigurationError,
)

from exceptions.database import (
    DatabaseException,
    DatabaseConnectionError,
    DatabaseQueryError,
    DatabaseNotFoundError,
)

from exceptions.validation import (
    ValidationException,
    InvalidURLError,
    InvalidIntervalError,
    InvalidTimeoutError,
    InvalidContactError,
)

from exceptions.notification import (
    NotificationError,
    EmailDeliveryError,
    WebhookDeliveryError,
    VoiceCallError,
    PushDeliveryError,
)

__all__ = [
    # Base exceptions
    "UptimeMonitorException",
    "ConfigurationError",

    # Database exceptions
    "DatabaseException",
    "DatabaseConnectionError",
    "DatabaseQueryError",
    "DatabaseNotFoundError",

    # Validation exceptions
    "ValidationException",
    "InvalidURLError",
    "InvalidIntervalError",
    "InvalidTimeoutError",
    "InvalidContactError",

    # Notification exceptions
    "NotificationError",
    "EmailDeliveryError",
    "WebhookDeliveryError",
    "VoiceCallError",
    "PushDeliveryError",
]
