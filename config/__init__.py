"""
Configuration Package for Uptime Monitor

This package contains all configuration-related modules including:
- Settings management with environment variable support
- Constants and enums used throughout the engine
"""

from config.settings import (
    Settings,
    DatabaseSettings,
    RetrySettings,
    MonitoringSettings,
    EmailSettings,
    WebhookSettings,
    TwilioSettings,
    PushSettings,
    LoggingSettings,
    ServerSettings,
    get_settings,
)

from config.constants import (
    MonitorStatus,
    MonitorType,
    DevicePlatform,
    AlertChannel,
    Defaults,
    Limits,
)

__all__ = [
    # Settings
    "Settings",
    "DatabaseSettings",
    "RetrySettings",
    "MonitoringSettings",
    "EmailSettings",
    "WebhookSettings",
    "TwilioSettings",
    "PushSettings",
    "LoggingSettings",
    "ServerSettings",
    "get_settings",

    # Constants
    "MonitorStatus",
    "MonitorType",
    "DevicePlatform",
    "AlertChannel",
    "Defaults",
    "Limits",
]
