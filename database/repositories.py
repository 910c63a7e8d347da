"""
============================================================================
UPTIME MONITOR - REPOSITORIES
============================================================================
Storage adapters implementing the engine's boundary contracts on top
of DatabaseManager sessions.

Errors are logged and re-raised; the engine decides which failures
are fatal.
============================================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, List, Optional, Sequence

from sqlalchemy import delete, select, update

from config.constants import DevicePlatform, MonitorStatus, MonitorType
from database.connection import DatabaseManager
from database.models import ContactList, DeviceToken, Monitor, MonitorCheck
from exceptions import DatabaseNotFoundError
from monitoring.prober import CheckResult
from utils.helpers import TimeHelper
from utils.logger import get_logger
from utils.validators import ContactValidator, MonitorValidator, URLValidator


# ============================================================================
# DATABASE REPOSITORY BASE CLASS
# ============================================================================

class BaseRepository:
    """
    Base repository class for database operations.
    """

    def __init__(self, db_manager: DatabaseManager):
        """
        Initialize repository.

        Args:
            db_manager: DatabaseManager instance
        """
        self.db = db_manager
        self.logger = get_logger(self.__class__.__name__)

    async def _add(self, instance: Any) -> Any:
        try:
            async with self.db.session() as session:
                session.add(instance)
                await session.flush()
                await session.refresh(instance)
                return instance
        except Exception as e:
            self.logger.error(f"Error creating {instance.__class__.__name__}: {e}")
            raise


# ============================================================================
# MONITOR REPOSITORY
# ============================================================================

class MonitorRepository(BaseRepository):
    """Monitor source: pollable listing and status updates."""

    async def list_pollable(self) -> List[Monitor]:
        """Monitors with status up or down, in id order."""
        async with self.db.session() as session:
            result = await session.execute(
                select(Monitor)
                .where(Monitor.status.in_(list(MonitorStatus.pollable())))
                .order_by(Monitor.id.asc())
            )
            return list(result.scalars().all())

    async def get(self, monitor_id: int) -> Monitor:
        """
        Get monitor by primary key.

        Raises:
            DatabaseNotFoundError: unknown id
        """
        async with self.db.session() as session:
            monitor = await session.get(Monitor, monitor_id)

        if monitor is None:
            raise DatabaseNotFoundError(
                f"Monitor {monitor_id} not found",
                entity_type="Monitor",
                entity_id=monitor_id,
            )
        return monitor

    async def update_status(
        self,
        monitor_id: int,
        status: MonitorStatus,
        last_check: datetime,
    ) -> None:
        try:
            async with self.db.session() as session:
                result = await session.execute(
                    update(Monitor)
                    .where(Monitor.id == monitor_id)
                    .values(
                        status=MonitorStatus(status),
                        last_check=TimeHelper.to_naive_utc(last_check),
                        updated_at=TimeHelper.utc_now(),
                    )
                )
                if result.rowcount == 0:
                    raise DatabaseNotFoundError(
                        f"Monitor {monitor_id} not found",
                        entity_type="Monitor",
                        entity_id=monitor_id,
                    )
        except Exception as e:
            self.logger.error(f"Error updating status of monitor {monitor_id}: {e}")
            raise

    async def create(
        self,
        name: str,
        url: str,
        interval: int = 60,
        timeout: int = 30,
        status: MonitorStatus = MonitorStatus.PAUSED,
        alert_emails: Optional[Iterable[str]] = None,
        alert_phones: Optional[Iterable[str]] = None,
        alert_webhooks: Optional[Iterable[str]] = None,
        contact_list_ids: Optional[Iterable[int]] = None,
        last_check: Optional[datetime] = None,
    ) -> Monitor:
        """
        Validate and insert a monitor.

        Raises:
            ValidationException: invalid field values
        """
        url = URLValidator.validate_url(url)
        monitor = Monitor(
            name=MonitorValidator.validate_name(name),
            url=url,
            monitor_type=MonitorType.HTTPS if url.lower().startswith("https") else MonitorType.HTTP,
            interval=MonitorValidator.validate_interval(interval),
            timeout=MonitorValidator.validate_timeout(timeout),
            status=MonitorStatus(status),
            last_check=last_check,
            alert_emails=ContactValidator.validate_many(alert_emails, "email"),
            alert_phones=ContactValidator.validate_many(alert_phones, "phone"),
            alert_webhooks=ContactValidator.validate_many(alert_webhooks, "webhook"),
            contact_list_ids=[int(i) for i in (contact_list_ids or [])],
        )
        monitor = await self._add(monitor)
        self.logger.info(f"Created monitor {monitor.id} ({monitor.name})")
        return monitor


# ============================================================================
# CHECK REPOSITORY
# ============================================================================

class CheckRepository(BaseRepository):
    """Append-only check history."""

    async def record_check(self, monitor_id: int, result: CheckResult) -> MonitorCheck:
        check = MonitorCheck(
            monitor_id=monitor_id,
            success=result.success,
            response_time=int(result.response_time or 0),
            status_code=result.status_code,
            error=result.error,
            timestamp=TimeHelper.to_naive_utc(result.timestamp),
            attempt_number=result.attempt_number,
        )
        return await self._add(check)

    async def checks_since(self, monitor_id: int, since: datetime) -> List[MonitorCheck]:
        """Checks for a monitor at or after *since*, newest first."""
        async with self.db.session() as session:
            result = await session.execute(
                select(MonitorCheck)
                .where(
                    MonitorCheck.monitor_id == monitor_id,
                    MonitorCheck.timestamp >= TimeHelper.to_naive_utc(since),
                )
                .order_by(MonitorCheck.timestamp.desc())
            )
            return list(result.scalars().all())

    async def prune_older_than(self, cutoff: datetime) -> int:
        """
        Delete checks older than *cutoff*.

        Returns:
            Number of deleted records
        """
        try:
            async with self.db.session() as session:
                result = await session.execute(
                    delete(MonitorCheck).where(
                        MonitorCheck.timestamp < TimeHelper.to_naive_utc(cutoff)
                    )
                )
                deleted = result.rowcount or 0
        except Exception as e:
            self.logger.error(f"Failed to prune check history: {e}")
            raise

        self.logger.info(f"Pruned {deleted} check(s) older than {TimeHelper.isoformat(cutoff)}")
        return deleted


# ============================================================================
# CONTACT LIST REPOSITORY
# ============================================================================

class ContactListRepository(BaseRepository):
    """Read-only contact list lookup for the resolver, plus creation."""

    async def lookup_lists(self, ids: Sequence[Any]) -> List[ContactList]:
        """
        Fetch contact lists by id.

        Unknown ids are skipped with a warning. Ids that are not
        integers cannot match anything and are skipped the same way.
        """
        wanted: List[int] = []
        for raw in ids:
            try:
                wanted.append(int(raw))
            except (TypeError, ValueError):
                self.logger.warning(f"Ignoring malformed contact list id {raw!r}")

        if not wanted:
            return []

        async with self.db.session() as session:
            result = await session.execute(
                select(ContactList).where(ContactList.id.in_(wanted))
            )
            lists = list(result.scalars().all())

        missing = set(wanted) - {contact_list.id for contact_list in lists}
        if missing:
            self.logger.warning(f"Contact list(s) not found: {sorted(missing)}")

        return lists

    async def create(
        self,
        name: str,
        emails: Optional[Iterable[str]] = None,
        phones: Optional[Iterable[str]] = None,
        webhooks: Optional[Iterable[str]] = None,
        description: Optional[str] = None,
    ) -> ContactList:
        contact_list = ContactList(
            name=MonitorValidator.validate_name(name),
            description=description,
            emails=ContactValidator.validate_many(emails, "email"),
            phones=ContactValidator.validate_many(phones, "phone"),
            webhooks=ContactValidator.validate_many(webhooks, "webhook"),
        )
        return await self._add(contact_list)


# ============================================================================
# DEVICE TOKEN REPOSITORY
# ============================================================================

class DeviceTokenRepository(BaseRepository):
    """Push device tokens."""

    async def active_tokens(self) -> List[str]:
        async with self.db.session() as session:
            result = await session.execute(
                select(DeviceToken.token)
                .where(DeviceToken.is_active.is_(True))
                .order_by(DeviceToken.id.asc())
            )
            return list(result.scalars().all())

    async def register(self, token: str, platform: DevicePlatform) -> DeviceToken:
        """Insert a token, or reactivate it if already known."""
        async with self.db.session() as session:
            result = await session.execute(
                select(DeviceToken).where(DeviceToken.token == token)
            )
            device = result.scalar_one_or_none()

            if device is None:
                device = DeviceToken(token=token, platform=DevicePlatform(platform), is_active=True)
                session.add(device)
            else:
                device.platform = DevicePlatform(platform)
                device.is_active = True

            await session.flush()
            await session.refresh(device)
            return device

    async def deactivate(self, tokens: Sequence[str]) -> int:
        """
        Mark tokens inactive.

        Returns:
            Number of rows updated
        """
        if not tokens:
            return 0

        async with self.db.session() as session:
            result = await session.execute(
                update(DeviceToken)
                .where(DeviceToken.token.in_(list(tokens)))
                .values(is_active=False, updated_at=TimeHelper.utc_now())
            )
            count = result.rowcount or 0

        self.logger.info(f"Marked {count} invalid device token(s) as inactive")
        return count
