"""
Constants Module for Uptime Monitor

Contains the enumerations and engine defaults shared by the
monitoring engine, the storage layer and the notification senders.
"""

from __future__ import annotations

from enum import Enum
from typing import Final, FrozenSet


class MonitorStatus(str, Enum):
    """
    Persisted monitor state.

    The engine only ever moves a monitor between UP and DOWN.
    PAUSED is set and cleared by management code outside the engine.
    """

    UP = "up"
    DOWN = "down"
    PAUSED = "paused"

    @classmethod
    def pollable(cls) -> FrozenSet["MonitorStatus"]:
        """States the scheduler is allowed to poll."""
        return frozenset({cls.UP, cls.DOWN})


class MonitorType(str, Enum):
    """Protocol of the monitored endpoint."""

    HTTP = "http"
    HTTPS = "https"


class DevicePlatform(str, Enum):
    """Mobile platform of a registered push token."""

    IOS = "ios"
    ANDROID = "android"


class AlertChannel(str, Enum):
    """Delivery channels used by the alert dispatcher."""

    EMAIL = "email"
    WEBHOOK = "webhook"
    VOICE = "voice"
    PUSH = "push"


class Defaults:
    """
    Engine defaults.

    Time values follow the unit noted in each name; retry delays are in
    milliseconds to match the persisted response times.
    """

    EXECUTION_BUDGET_SECONDS: Final[float] = 55.0
    MAX_REDIRECTS: Final[int] = 5

    RETRY_COUNT: Final[int] = 3
    RETRY_INITIAL_DELAY_MS: Final[int] = 1000
    RETRY_MULTIPLIER: Final[float] = 2.0
    RETRY_MAX_DELAY_MS: Final[int] = 5000

    MONITOR_INTERVAL_SECONDS: Final[int] = 60
    MONITOR_TIMEOUT_SECONDS: Final[int] = 30
    CHECK_RETENTION_DAYS: Final[int] = 90

    UNKNOWN_ERROR: Final[str] = "Unknown error"
    USER_AGENT: Final[str] = "UptimeMonitor/1.0 (+https://github.com/uptime-monitor)"


class Limits:
    """Validation bounds for monitor configuration."""

    MIN_INTERVAL_SECONDS: Final[int] = 30
    MIN_TIMEOUT_SECONDS: Final[int] = 5
    MAX_TIMEOUT_SECONDS: Final[int] = 60
    MAX_URL_LENGTH: Final[int] = 2048
    MAX_NAME_LENGTH: Final[int] = 200
    ALLOWED_URL_SCHEMES: Final[FrozenSet[str]] = frozenset({"http", "https"})
