"""
Database Exception Classes for Uptime Monitor

A connection failure at the start of a batch is the only storage
error the engine lets escape to the caller; query errors inside one
monitor's processing are contained by the orchestrator.
"""

from __future__ import annotations

from typing import Any, Optional

from exceptions.base import UptimeMonitorException


class DatabaseException(UptimeMonitorException):
    """Parent of every storage error."""

    default_error_code = 2000


class DatabaseConnectionError(DatabaseException):
    """
    The store could not be reached.

    Raised by DatabaseManager.connect / ensure_connected and when a
    session is requested before connecting.
    """

    default_error_code = 2001

    def __init__(
        self,
        message: str = "Unable to connect to database",
        host: Optional[str] = None,
        port: Optional[int] = None,
        database: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)

        for key, value in (("host", host), ("port", port), ("database", database)):
            if value:
                self.details[key] = value


class DatabaseQueryError(DatabaseException):
    """A statement failed inside a session; the session was rolled back."""

    default_error_code = 2002

    def __init__(self, message: str = "Database query failed", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class DatabaseNotFoundError(DatabaseException):
    """
    A monitor, contact list or device token does not exist.

    The trigger server answers these with 404; the CLI exits with 1.
    """

    default_error_code = 2003

    def __init__(
        self,
        message: str = "Record not found",
        entity_type: Optional[str] = None,
        entity_id: Optional[Any] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)

        if entity_type:
            self.details["entity_type"] = entity_type

        if entity_id is not None:
            self.details["entity_id"] = str(entity_id)
