"""
Validation Exception Classes for Uptime Monitor

Raised when monitor or contact-list data written through the
repositories violates the configuration bounds.
"""

from __future__ import annotations

from typing import Any, Optional

from exceptions.base import UptimeMonitorException


class ValidationException(UptimeMonitorException):
    """
    Base Validation Exception

    Parent class for all validation-related exceptions.
    """

    default_error_code = 3000

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs: Any
    ) -> None:
        """
        Initialize validation exception.

        Args:
            message: Error message
            field: The field that failed validation
            value: The invalid value (sanitized)
            **kwargs: Additional arguments
        """
        super().__init__(message, **kwargs)

        if field:
            self.details["field"] = field

        if value is not None:
            self.details["value"] = self._sanitize_value(value)

    @staticmethod
    def _sanitize_value(value: Any) -> str:
        str_value = str(value)
        if len(str_value) > 100:
            str_value = str_value[:100] + "..."
        return str_value


class InvalidURLError(ValidationException):
    """Raised when a monitor or webhook URL is malformed."""

    default_error_code = 3001

    def __init__(
        self,
        message: str = "Invalid URL format",
        url: Optional[str] = None,
        reason: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, field="url", value=url, **kwargs)

        if reason:
            self.details["reason"] = reason


class InvalidIntervalError(ValidationException):
    """Raised when a poll interval is below the minimum."""

    default_error_code = 3002

    def __init__(
        self,
        message: str = "Invalid interval",
        interval: Optional[int] = None,
        min_interval: Optional[int] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, field="interval", value=interval, **kwargs)

        if min_interval is not None:
            self.details["min_interval"] = min_interval


class InvalidTimeoutError(ValidationException):
    """Raised when a probe timeout is outside the allowed range."""

    default_error_code = 3003

    def __init__(
        self,
        message: str = "Invalid timeout",
        timeout: Optional[int] = None,
        min_timeout: Optional[int] = None,
        max_timeout: Optional[int] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, field="timeout", value=timeout, **kwargs)

        if min_timeout is not None:
            self.details["min_timeout"] = min_timeout

        if max_timeout is not None:
            self.details["max_timeout"] = max_timeout


class InvalidContactError(ValidationException):
    """Raised when an e-mail address, phone number or webhook URL is malformed."""

    default_error_code = 3004

    def __init__(
        self,
        message: str = "Invalid contact",
        kind: Optional[str] = None,
        value: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, field=kind, value=value, **kwargs)
