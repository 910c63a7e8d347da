from __future__ import annotations

import asyncio
import json
from datetime import timedelta

import httpx
import pytest

import main as cli
from config.constants import MonitorStatus
from config.settings import (
    DatabaseSettings,
    EmailSettings,
    LoggingSettings,
    PushSettings,
    RetrySettings,
    Settings,
    TwilioSettings,
    WebhookSettings,
)
from monitoring.prober import CheckResult, EndpointProber
from monitoring.service import MonitorService
from utils.helpers import TimeHelper


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.host == "down.example.com":
        return httpx.Response(503)
    return httpx.Response(200)


def _settings(database: DatabaseSettings) -> Settings:
    return Settings(
        database=database,
        retry=RetrySettings(count=0),
        email=EmailSettings(enabled=False),
        webhook=WebhookSettings(enabled=False),
        twilio=TwilioSettings(),
        push=PushSettings(),
        logging=LoggingSettings(to_console=False, to_file=False),
    )


def _use(monkeypatch, settings: Settings) -> None:
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    monkeypatch.setattr(
        cli,
        "MonitorService",
        lambda s: MonitorService(s, prober=EndpointProber(transport=httpx.MockTransport(_handler))),
    )


def _output(capsys) -> dict:
    return json.loads(capsys.readouterr().out)


@pytest.fixture
def settings(tmp_path, monkeypatch) -> Settings:
    settings = _settings(DatabaseSettings(sqlite_path=tmp_path / "monitor.db"))
    _use(monkeypatch, settings)
    return settings


def _create_monitor(settings: Settings, name: str, url: str, status: MonitorStatus) -> int:
    async def create() -> int:
        async with MonitorService(settings) as service:
            monitor = await service.monitors.create(name, url, status=status)
            return monitor.id

    return asyncio.run(create())


def test_run_once_prints_batch_summary(settings, capsys) -> None:
    _create_monitor(settings, "Healthy", "https://up.example.com", MonitorStatus.UP)
    _create_monitor(settings, "Broken", "https://down.example.com", MonitorStatus.UP)

    code = cli.main(["run-once"])
    summary = _output(capsys)

    assert code == 0
    assert summary["success"] is True
    assert summary["monitorsChecked"] == 2
    assert summary["checked"] == 2
    assert summary["alerts"] == 1


def test_run_once_with_no_monitors(settings, capsys) -> None:
    code = cli.main(["run-once"])

    assert code == 0
    assert _output(capsys)["monitorsChecked"] == 0


def test_check_prints_transition(settings, capsys) -> None:
    monitor_id = _create_monitor(settings, "Broken", "https://down.example.com", MonitorStatus.UP)

    code = cli.main(["check", str(monitor_id)])
    outcome = _output(capsys)

    assert code == 0
    assert outcome["previousStatus"] == "up"
    assert outcome["currentStatus"] == "down"
    assert outcome["checkResult"]["statusCode"] == 503
    assert outcome["checkResult"]["attemptNumber"] == 1


def test_check_unknown_monitor_exits_with_error(settings, capsys) -> None:
    code = cli.main(["check", "999"])
    body = _output(capsys)

    assert code == 1
    assert body["success"] is False
    assert "Monitor 999 not found" in body["error"]


def test_stats_after_check(settings, capsys) -> None:
    monitor_id = _create_monitor(settings, "Healthy", "https://up.example.com", MonitorStatus.UP)
    cli.main(["check", str(monitor_id)])
    capsys.readouterr()

    code = cli.main(["stats", str(monitor_id)])
    stats = _output(capsys)

    assert code == 0
    assert stats["totalChecks"] == 1
    assert stats["uptime24h"] == 100


def test_prune_reports_removed_rows(settings, capsys) -> None:
    monitor_id = _create_monitor(settings, "Healthy", "https://up.example.com", MonitorStatus.UP)

    async def record_history() -> None:
        async with MonitorService(settings) as service:
            stale = TimeHelper.utc_now() - timedelta(days=settings.monitoring.check_retention_days + 1)
            await service.checks.record_check(monitor_id, CheckResult(success=True, timestamp=stale))
            await service.checks.record_check(monitor_id, CheckResult(success=True))

    asyncio.run(record_history())

    code = cli.main(["prune"])

    assert code == 0
    assert _output(capsys) == {"removed": 1}


def test_unreachable_store_exits_with_error(tmp_path, monkeypatch, capsys) -> None:
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("")
    _use(monkeypatch, _settings(DatabaseSettings(sqlite_path=blocker / "monitor.db")))

    code = cli.main(["run-once"])
    body = _output(capsys)

    assert code == 1
    assert body["success"] is False
    assert "Failed to connect to database" in body["error"]


def test_unknown_command_is_rejected() -> None:
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["explode"])
