"""
Base Exception Classes for Uptime Monitor

Every error raised by the storage layer, the validators and the
notification senders derives from UptimeMonitorException.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Type


class UptimeMonitorException(Exception):
    """
    Root of the monitor engine's exception hierarchy.

    Attributes:
        message: Human-readable error message
        error_code: Numeric code grouping errors by layer
            (1xxx config, 2xxx storage, 3xxx validation, 4xxx delivery)
        details: Structured context for logs
        cause: The underlying exception, if any
    """

    default_error_code: int = 1000

    def __init__(
        self,
        message: str = "An error occurred",
        error_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)

        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        self.cause = cause

    @property
    def full_message(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __str__(self) -> str:
        return self.full_message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code}, "
            f"details={self.details})"
        )


class ConfigurationError(UptimeMonitorException):
    """A sender or setting was used without the values it needs."""

    default_error_code = 1100

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[Type] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)

        if config_key:
            self.details["config_key"] = config_key

        if expected_type:
            self.details["expected_type"] = expected_type.__name__
