from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import delete, text

from config.constants import DevicePlatform, MonitorStatus, MonitorType
from database.repositories import (
    CheckRepository,
    ContactListRepository,
    DeviceTokenRepository,
    MonitorRepository,
)
from database.models import Monitor
from exceptions import DatabaseNotFoundError, DatabaseQueryError, InvalidIntervalError, InvalidURLError
from monitoring.prober import CheckResult
from utils.helpers import TimeHelper


async def test_list_pollable_excludes_paused(db) -> None:
    monitors = MonitorRepository(db)
    up = await monitors.create("API", "https://api.example.com", status=MonitorStatus.UP)
    down = await monitors.create("Web", "http://web.example.com", status=MonitorStatus.DOWN)
    await monitors.create("Paused", "https://paused.example.com")

    pollable = await monitors.list_pollable()

    assert [m.id for m in pollable] == [up.id, down.id]
    assert pollable[1].monitor_type == MonitorType.HTTP


async def test_create_validates_fields(db) -> None:
    monitors = MonitorRepository(db)

    with pytest.raises(InvalidURLError):
        await monitors.create("Bad", "ftp://example.com")
    with pytest.raises(InvalidIntervalError):
        await monitors.create("Fast", "https://example.com", interval=5)


async def test_update_status_persists_status_and_last_check(db) -> None:
    monitors = MonitorRepository(db)
    monitor = await monitors.create("API", "https://api.example.com", status=MonitorStatus.UP)
    checked_at = TimeHelper.utc_now().replace(microsecond=0)

    await monitors.update_status(monitor.id, MonitorStatus.DOWN, checked_at)

    stored = await monitors.get(monitor.id)
    assert stored.status == MonitorStatus.DOWN
    assert stored.last_check == checked_at


async def test_unknown_monitor_raises_not_found(db) -> None:
    monitors = MonitorRepository(db)

    with pytest.raises(DatabaseNotFoundError):
        await monitors.get(404)
    with pytest.raises(DatabaseNotFoundError):
        await monitors.update_status(404, MonitorStatus.UP, TimeHelper.utc_now())


async def test_record_check_and_history_window(db) -> None:
    monitor = await MonitorRepository(db).create("API", "https://api.example.com", status=MonitorStatus.UP)
    checks = CheckRepository(db)
    now = TimeHelper.utc_now()

    await checks.record_check(
        monitor.id,
        CheckResult(success=False, response_time=1234, status_code=503, error="HTTP 503", attempt_number=3),
    )
    await checks.record_check(
        monitor.id,
        CheckResult(success=True, response_time=80, timestamp=now - timedelta(days=40), attempt_number=1),
    )

    recent = await checks.checks_since(monitor.id, now - timedelta(days=30))

    assert len(recent) == 1
    assert recent[0].success is False
    assert recent[0].attempt_number == 3
    assert recent[0].error == "HTTP 503"


async def test_prune_older_than_removes_old_checks(db) -> None:
    monitor = await MonitorRepository(db).create("API", "https://api.example.com", status=MonitorStatus.UP)
    checks = CheckRepository(db)
    now = TimeHelper.utc_now()

    await checks.record_check(monitor.id, CheckResult(success=True, timestamp=now - timedelta(days=100)))
    await checks.record_check(monitor.id, CheckResult(success=True, timestamp=now))

    removed = await checks.prune_older_than(now - timedelta(days=90))

    assert removed == 1
    assert len(await checks.checks_since(monitor.id, now - timedelta(days=365))) == 1


async def test_lookup_lists_skips_missing_and_malformed_ids(db) -> None:
    contact_lists = ContactListRepository(db)
    oncall = await contact_lists.create("On-call", emails=["a@x.com", "b@x.com"], phones=["+15550100001"])

    found = await contact_lists.lookup_lists([oncall.id, 999, "not-an-id"])

    assert [c.id for c in found] == [oncall.id]
    assert found[0].emails == ["a@x.com", "b@x.com"]
    assert await contact_lists.lookup_lists([]) == []


async def test_device_tokens_register_and_deactivate(db) -> None:
    tokens = DeviceTokenRepository(db)
    await tokens.register("token-a", DevicePlatform.IOS)
    await tokens.register("token-b", DevicePlatform.ANDROID)
    await tokens.register("token-a", DevicePlatform.IOS)

    assert await tokens.active_tokens() == ["token-a", "token-b"]

    assert await tokens.deactivate(["token-b"]) == 1
    assert await tokens.active_tokens() == ["token-a"]

    await tokens.register("token-b", DevicePlatform.ANDROID)
    assert await tokens.active_tokens() == ["token-a", "token-b"]


async def test_sqlite_enforces_foreign_keys(db) -> None:
    async with db.session() as session:
        enabled = (await session.execute(text("PRAGMA foreign_keys"))).scalar()

    assert enabled == 1
    with pytest.raises(DatabaseQueryError):
        await CheckRepository(db).record_check(9999, CheckResult(success=True))


async def test_deleting_a_monitor_cascades_to_its_checks(db) -> None:
    monitors = MonitorRepository(db)
    checks = CheckRepository(db)
    monitor = await monitors.create("API", "https://api.example.com", status=MonitorStatus.UP)
    await checks.record_check(monitor.id, CheckResult(success=True))

    async with db.session() as session:
        await session.execute(delete(Monitor).where(Monitor.id == monitor.id))

    since = TimeHelper.utc_now() - timedelta(hours=1)
    assert await checks.checks_since(monitor.id, since) == []
