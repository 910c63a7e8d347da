"""
============================================================================
UPTIME MONITOR - DATABASE MODELS
============================================================================
SQLAlchemy ORM models for monitors, check history, contact lists
and push device tokens.

Timestamps are stored as naive UTC.
============================================================================
"""

from __future__ import annotations

from typing import Any, Dict, List

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text,
    JSON, Enum, ForeignKey, Index, CheckConstraint
)
from sqlalchemy.orm import declarative_base, relationship

from config.constants import DevicePlatform, Limits, MonitorStatus, MonitorType
from utils.helpers import TimeHelper


# ============================================================================
# BASE MODEL CONFIGURATION
# ============================================================================

Base = declarative_base()


def _enum_column(enum_cls):
    """Store enum values (not member names) as portable VARCHARs."""
    return Enum(
        enum_cls,
        native_enum=False,
        values_callable=lambda members: [member.value for member in members],
        length=16,
    )


class TimestampMixin:
    """
    Mixin to add created_at and updated_at timestamps to models.
    """
    created_at = Column(
        DateTime,
        nullable=False,
        default=TimeHelper.utc_now,
    )
    updated_at = Column(
        DateTime,
        nullable=False,
        default=TimeHelper.utc_now,
        onupdate=TimeHelper.utc_now,
    )


# ============================================================================
# MONITOR MODEL
# ============================================================================

class Monitor(TimestampMixin, Base):
    """
    A configured HTTP/HTTPS endpoint polled on an interval.

    The engine reads the configuration fields and writes only
    ``status`` and ``last_check``.
    """

    __tablename__ = "monitors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(Limits.MAX_NAME_LENGTH), nullable=False)
    url = Column(String(Limits.MAX_URL_LENGTH), nullable=False)
    monitor_type = Column(_enum_column(MonitorType), nullable=False, default=MonitorType.HTTPS)

    interval = Column("check_interval", Integer, nullable=False, default=60)
    timeout = Column(Integer, nullable=False, default=30)

    status = Column(
        _enum_column(MonitorStatus),
        nullable=False,
        default=MonitorStatus.PAUSED,
        index=True,
    )
    last_check = Column(DateTime, nullable=True)

    alert_emails = Column(JSON, nullable=False, default=list)
    alert_phones = Column(JSON, nullable=False, default=list)
    alert_webhooks = Column(JSON, nullable=False, default=list)
    contact_list_ids = Column(JSON, nullable=False, default=list)

    checks = relationship(
        "MonitorCheck",
        back_populates="monitor",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="noload",
    )

    __table_args__ = (
        CheckConstraint(f"check_interval >= {Limits.MIN_INTERVAL_SECONDS}", name="ck_monitor_interval"),
        CheckConstraint(
            f"timeout >= {Limits.MIN_TIMEOUT_SECONDS} AND timeout <= {Limits.MAX_TIMEOUT_SECONDS}",
            name="ck_monitor_timeout",
        ),
    )

    @property
    def is_pollable(self) -> bool:
        return self.status in MonitorStatus.pollable()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "type": self.monitor_type.value if self.monitor_type else None,
            "interval": self.interval,
            "timeout": self.timeout,
            "status": self.status.value if self.status else None,
            "lastCheck": TimeHelper.isoformat(self.last_check) if self.last_check else None,
            "alerts": {
                "email": list(self.alert_emails or []),
                "phone": list(self.alert_phones or []),
                "webhook": list(self.alert_webhooks or []),
            },
            "contactLists": list(self.contact_list_ids or []),
        }

    def __repr__(self) -> str:
        return f"<Monitor(id={self.id}, name={self.name!r}, status={self.status})>"


# ============================================================================
# CHECK HISTORY MODEL
# ============================================================================

class MonitorCheck(Base):
    """
    One completed probe-with-retries outcome.

    Insert-only; rows are never updated, only pruned by age.
    """

    __tablename__ = "monitor_checks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    monitor_id = Column(
        Integer,
        ForeignKey("monitors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    success = Column(Boolean, nullable=False)
    response_time = Column(Integer, nullable=False, default=0)
    status_code = Column(Integer, nullable=True)
    error = Column(Text, nullable=True)
    timestamp = Column(DateTime, nullable=False, default=TimeHelper.utc_now, index=True)
    attempt_number = Column(Integer, nullable=True)

    monitor = relationship("Monitor", back_populates="checks")

    __table_args__ = (
        Index("idx_monitor_checks_monitor_timestamp", "monitor_id", "timestamp"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "monitorId": self.monitor_id,
            "success": self.success,
            "responseTime": self.response_time,
            "statusCode": self.status_code,
            "error": self.error,
            "timestamp": TimeHelper.isoformat(self.timestamp),
            "attemptNumber": self.attempt_number,
        }

    def __repr__(self) -> str:
        return (
            f"<MonitorCheck(monitor_id={self.monitor_id}, success={self.success}, "
            f"response_time={self.response_time})>"
        )


# ============================================================================
# CONTACT LIST MODEL
# ============================================================================

class ContactList(TimestampMixin, Base):
    """Named, reusable bag of e-mail, phone and webhook destinations."""

    __tablename__ = "contact_lists"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(Limits.MAX_NAME_LENGTH), nullable=False)
    description = Column(Text, nullable=True)
    emails = Column(JSON, nullable=False, default=list)
    phones = Column(JSON, nullable=False, default=list)
    webhooks = Column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        return f"<ContactList(id={self.id}, name={self.name!r})>"


# ============================================================================
# DEVICE TOKEN MODEL
# ============================================================================

class DeviceToken(TimestampMixin, Base):
    """Registered mobile push token."""

    __tablename__ = "device_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    token = Column(String(512), nullable=False, unique=True)
    platform = Column(_enum_column(DevicePlatform), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    def __repr__(self) -> str:
        return f"<DeviceToken(id={self.id}, platform={self.platform}, active={self.is_active})>"


__all__: List[str] = ["Base", "Monitor", "MonitorCheck", "ContactList", "DeviceToken"]
