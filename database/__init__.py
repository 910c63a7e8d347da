"""
Database Package for Uptime Monitor

Provides database connectivity, models, and repositories for
monitors, check history, contact lists and device tokens using
SQLAlchemy with async support.
"""

from database.connection import DatabaseManager

from database.models import (
    Base,
    Monitor,
    MonitorCheck,
    ContactList,
    DeviceToken,
)

from database.repositories import (
    BaseRepository,
    MonitorRepository,
    CheckRepository,
    ContactListRepository,
    DeviceTokenRepository,
)

__all__ = [
    # Connection
    "DatabaseManager",

    # Models
    "Base",
    "Monitor",
    "MonitorCheck",
    "ContactList",
    "DeviceToken",

    # Repositories
    "BaseRepository",
    "MonitorRepository",
    "CheckRepository",
    "ContactListRepository",
    "DeviceTokenRepository",
]
