"""
============================================================================
UPTIME MONITOR - HELPERS UTILITY
============================================================================
Time and string helpers shared by the engine, storage and senders.
============================================================================
"""

from __future__ import annotations

import html
from datetime import datetime, timezone
from typing import Optional


# ============================================================================
# TIME UTILITIES
# ============================================================================

class TimeHelper:
    """
    Time and date manipulation utilities.

    All persisted timestamps are naive UTC; SQLite hands them back
    without tzinfo, so comparisons are done naive throughout.
    """

    @staticmethod
    def utc_now() -> datetime:
        """Get current UTC datetime (naive)."""
        return datetime.now(timezone.utc).replace(tzinfo=None)

    @staticmethod
    def to_naive_utc(dt: datetime) -> datetime:
        """Convert an aware datetime to naive UTC; naive input is returned as-is."""
        if dt.tzinfo is None:
            return dt
        return dt.astimezone(timezone.utc).replace(tzinfo=None)

    @staticmethod
    def isoformat(dt: datetime) -> str:
        """
        Format a naive UTC datetime as ISO-8601 with a trailing Z.

        Args:
            dt: Datetime to format

        Returns:
            e.g. "2024-05-01T12:00:00.000Z"
        """
        dt = TimeHelper.to_naive_utc(dt)
        return dt.isoformat(timespec="milliseconds") + "Z"

    @staticmethod
    def seconds_since(then: Optional[datetime], now: Optional[datetime] = None) -> float:
        """
        Seconds elapsed since ``then``.

        A missing timestamp counts as the epoch, so the result is
        always large enough to pass any interval gate.
        """
        now = now or TimeHelper.utc_now()
        if then is None:
            then = datetime(1970, 1, 1)
        return (now - TimeHelper.to_naive_utc(then)).total_seconds()

    @staticmethod
    def seconds_to_human_readable(seconds: int) -> str:
        """
        Convert seconds to human-readable format.

        Args:
            seconds: Number of seconds

        Returns:
            Human-readable string (e.g., "2h 30m 15s")
        """
        if seconds < 0:
            return "0s"

        days, remainder = divmod(int(seconds), 86400)
        hours, remainder = divmod(remainder, 3600)
        minutes, secs = divmod(remainder, 60)

        parts = []
        if days > 0:
            parts.append(f"{days}d")
        if hours > 0:
            parts.append(f"{hours}h")
        if minutes > 0:
            parts.append(f"{minutes}m")
        if secs > 0 or not parts:
            parts.append(f"{secs}s")

        return " ".join(parts)


# ============================================================================
# STRING UTILITIES
# ============================================================================

class StringHelper:
    """
    String manipulation utilities.
    """

    @staticmethod
    def truncate(text: str, max_length: int = 100, suffix: str = "...") -> str:
        """
        Truncate string to maximum length.

        Args:
            text: Text to truncate
            max_length: Maximum length including suffix
            suffix: Suffix to append when truncated

        Returns:
            Truncated string
        """
        if len(text) <= max_length:
            return text
        return text[: max_length - len(suffix)] + suffix

    @staticmethod
    def escape_html(text: str) -> str:
        """Escape text for inclusion in an HTML e-mail body."""
        return html.escape(text, quote=True)

    @staticmethod
    def mask(value: str, visible: int = 6) -> str:
        """
        Mask a secret-ish value (device token, phone number) for logs.

        >>> StringHelper.mask("abcdefghijkl")
        'abcdef...'
        """
        if len(value) <= visible:
            return value
        return value[:visible] + "..."
