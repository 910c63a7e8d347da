"""
============================================================================
UPTIME MONITOR - MONITOR SERVICE
============================================================================
Composition root: wires storage, channel senders and the check engine
from one Settings object, and exposes the operations used by the CLI,
the trigger server and the in-process scheduler.

Channel selection happens once, here:
    • e-mail    when EMAIL_ENABLED and an SMTP host is set
    • webhook   when WEBHOOK_ENABLED
    • voice     when the Twilio account is fully configured
    • push      relay sender when PUSH_RELAY_URL / key are set
============================================================================
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict, Optional

from config.settings import Settings, get_settings
from database.connection import DatabaseManager
from database.repositories import (
    CheckRepository,
    ContactListRepository,
    DeviceTokenRepository,
    MonitorRepository,
)
from exceptions import DatabaseNotFoundError
from monitoring.contacts import ContactResolver
from monitoring.dispatcher import AlertDispatcher
from monitoring.engine import BatchSummary, CheckOrchestrator, ManualCheckOutcome
from monitoring.prober import EndpointProber
from monitoring.retry import RetryController
from monitoring.stats import MonitorStats
from notifications.mail import SMTPEmailSender
from notifications.push import PushNotifier, PushReport, build_push_sender
from notifications.voice import TwilioVoiceSender
from notifications.webhook import HTTPWebhookSender
from utils.helpers import TimeHelper
from utils.logger import get_logger


logger = get_logger(__name__)


class MonitorService:
    """
    Long-lived facade over the check engine.

    Collaborators may be injected (tests pass fakes); anything omitted is
    built from ``settings``.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        db: Optional[DatabaseManager] = None,
        prober: Optional[EndpointProber] = None,
        dispatcher: Optional[AlertDispatcher] = None,
        push_sender: Any = None,
    ):
        self.settings = settings or get_settings()
        self.db = db or DatabaseManager(self.settings.database)

        self.monitors = MonitorRepository(self.db)
        self.checks = CheckRepository(self.db)
        self.contact_lists = ContactListRepository(self.db)
        self.device_tokens = DeviceTokenRepository(self.db)

        monitoring = self.settings.monitoring
        self.prober = prober or EndpointProber(
            max_redirects=monitoring.max_redirects,
            user_agent=monitoring.user_agent,
            verify_ssl=monitoring.verify_ssl,
        )
        self.retry = RetryController(self.prober, self.settings.retry.to_config())
        self.resolver = ContactResolver(self.contact_lists)
        self.dispatcher = dispatcher or self._build_dispatcher()

        self.orchestrator = CheckOrchestrator(
            monitors=self.monitors,
            checks=self.checks,
            retry=self.retry,
            resolver=self.resolver,
            dispatcher=self.dispatcher,
            execution_budget=monitoring.execution_budget,
        )

        self.push = PushNotifier(
            push_sender or build_push_sender(self.settings.push, self.device_tokens),
            self.device_tokens,
        )

    def _build_dispatcher(self) -> AlertDispatcher:
        email_sender = None
        if self.settings.email.configured:
            email_sender = SMTPEmailSender(self.settings.email)
        else:
            logger.warning("E-mail alerts disabled (EMAIL_ENABLED=false or no SMTP host)")

        webhook_sender = None
        if self.settings.webhook.enabled:
            webhook_sender = HTTPWebhookSender(self.settings.webhook)

        voice_sender = None
        if self.settings.twilio.configured:
            voice_sender = TwilioVoiceSender(self.settings.twilio)
        else:
            logger.info("Voice alerts disabled (Twilio not configured)")

        return AlertDispatcher(
            email_sender=email_sender,
            webhook_sender=webhook_sender,
            voice_sender=voice_sender,
        )

    # ------------------------------------------------------------------
    # LIFECYCLE
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Connect to the store and create missing tables."""
        await self.db.connect()
        await self.db.create_tables()

    async def close(self) -> None:
        await self.db.close()

    async def __aenter__(self) -> "MonitorService":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # OPERATIONS
    # ------------------------------------------------------------------

    async def run_batch(self) -> BatchSummary:
        """
        Run one batch of checks.

        Raises:
            DatabaseConnectionError: the store is unreachable
        """
        await self.db.ensure_connected()
        return await self.orchestrator.run()

    async def check_now(self, monitor_id: int) -> ManualCheckOutcome:
        """
        Check one monitor immediately.

        Raises:
            DatabaseNotFoundError: unknown monitor id
        """
        await self.db.ensure_connected()
        monitor = await self.monitors.get(monitor_id)
        return await self.orchestrator.check_monitor(monitor)

    async def stats(self, monitor_id: int) -> MonitorStats:
        await self.db.ensure_connected()
        await self.monitors.get(monitor_id)

        now = TimeHelper.utc_now()
        checks = await self.checks.checks_since(monitor_id, now - timedelta(days=30))
        return MonitorStats.from_checks(monitor_id, checks, now)

    async def prune_history(self) -> int:
        """Delete check records older than the retention window."""
        await self.db.ensure_connected()
        days = self.settings.monitoring.check_retention_days
        removed = await self.checks.prune_older_than(TimeHelper.utc_now() - timedelta(days=days))
        logger.info(f"Pruned {removed} check record(s) older than {days} day(s)")
        return removed

    async def test_push(self) -> PushReport:
        """
        Send the test notification to every active device.

        Raises:
            DatabaseNotFoundError: no active device tokens
        """
        await self.db.ensure_connected()
        tokens = await self.device_tokens.active_tokens()
        if not tokens:
            raise DatabaseNotFoundError(
                "No active device tokens found",
                entity_type="DeviceToken",
            )
        return await self.push.send_test_push()

    def describe(self) -> Dict[str, Any]:
        """Channel availability, for the health endpoint and the banner."""
        return {
            "email": self.dispatcher.email_sender is not None,
            "webhook": self.dispatcher.webhook_sender is not None,
            "voice": self.dispatcher.voice_sender is not None,
            "push": self.settings.push.configured,
        }
