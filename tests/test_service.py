from __future__ import annotations

from datetime import timedelta

import httpx
import pytest

from config.constants import DevicePlatform, MonitorStatus
from config.settings import (
    DatabaseSettings,
    EmailSettings,
    PushSettings,
    RetrySettings,
    Settings,
    TwilioSettings,
    WebhookSettings,
)
from exceptions import DatabaseConnectionError, DatabaseNotFoundError
from monitoring.dispatcher import AlertDispatcher
from monitoring.prober import CheckResult, EndpointProber
from monitoring.service import MonitorService
from notifications.push import PushReport
from utils.helpers import TimeHelper

from tests.conftest import RecordingSender


def _settings() -> Settings:
    return Settings(
        database=DatabaseSettings(sqlite_path=":memory:"),
        retry=RetrySettings(count=0),
        email=EmailSettings(enabled=False),
        webhook=WebhookSettings(enabled=False),
        twilio=TwilioSettings(),
        push=PushSettings(),
    )


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.host == "down.example.com":
        return httpx.Response(502)
    return httpx.Response(200)


class CapturingPush:
    def __init__(self):
        self.calls = []

    async def send_push(self, tokens, title, body, data=None):
        self.calls.append((list(tokens), title))
        return PushReport(success_count=len(tokens))


@pytest.fixture
async def service():
    sender = RecordingSender()
    svc = MonitorService(
        _settings(),
        prober=EndpointProber(transport=httpx.MockTransport(_handler)),
        dispatcher=AlertDispatcher(email_sender=sender, webhook_sender=sender, voice_sender=sender),
        push_sender=CapturingPush(),
    )
    svc.sender = sender
    await svc.start()
    yield svc
    await svc.close()


async def test_batch_records_checks_and_alerts_on_transition(service) -> None:
    oncall = await service.contact_lists.create("On-call", emails=["a@x.com", "b@x.com"])
    healthy = await service.monitors.create("Healthy", "https://up.example.com", status=MonitorStatus.UP)
    broken = await service.monitors.create(
        "Broken",
        "https://down.example.com",
        status=MonitorStatus.UP,
        alert_emails=["a@x.com"],
        contact_list_ids=[oncall.id],
    )

    summary = await service.run_batch()

    assert summary.checked == 2
    assert summary.alerts == 1
    assert sorted(call[1] for call in service.sender.calls) == ["a@x.com", "b@x.com"]
    assert (await service.monitors.get(healthy.id)).status == MonitorStatus.UP
    assert (await service.monitors.get(broken.id)).status == MonitorStatus.DOWN

    history = await service.checks.checks_since(broken.id, TimeHelper.utc_now() - timedelta(hours=1))
    assert len(history) == 1
    assert history[0].status_code == 502
    assert history[0].attempt_number == 1

    again = await service.run_batch()
    assert again.skipped == 2
    assert len(service.sender.calls) == 2


async def test_check_now_and_stats(service) -> None:
    monitor = await service.monitors.create("Broken", "https://down.example.com", status=MonitorStatus.DOWN)

    outcome = await service.check_now(monitor.id)
    stats = await service.stats(monitor.id)

    assert outcome.current_status == MonitorStatus.DOWN
    assert outcome.alerted is False
    assert stats.total_checks == 1
    assert stats.uptime_24h == 0

    with pytest.raises(DatabaseNotFoundError):
        await service.check_now(9999)


async def test_prune_history_uses_retention_window(service) -> None:
    monitor = await service.monitors.create("API", "https://up.example.com", status=MonitorStatus.UP)
    old = CheckResult(success=True, timestamp=TimeHelper.utc_now() - timedelta(days=120))
    await service.checks.record_check(monitor.id, old)
    await service.checks.record_check(monitor.id, CheckResult(success=True))

    assert await service.prune_history() == 1


async def test_test_push_requires_tokens(service) -> None:
    with pytest.raises(DatabaseNotFoundError):
        await service.test_push()

    await service.device_tokens.register("token-1", DevicePlatform.IOS)
    report = await service.test_push()

    assert report.success_count == 1


def test_default_dispatcher_reflects_configuration() -> None:
    service = MonitorService(_settings())

    assert service.describe() == {"email": False, "webhook": False, "voice": False, "push": False}


async def test_unreachable_database_is_fatal() -> None:
    class UnreachableDatabase:
        async def ensure_connected(self):
            raise DatabaseConnectionError("Database connectivity check failed")

    service = MonitorService(_settings(), db=UnreachableDatabase())

    with pytest.raises(DatabaseConnectionError):
        await service.run_batch()
