from __future__ import annotations

from datetime import timedelta

import pytest

from config.constants import MonitorStatus
from monitoring.contacts import ContactResolver
from monitoring.dispatcher import AlertDispatcher
from monitoring.engine import CheckOrchestrator, should_alert
from monitoring.retry import RetryConfig, RetryController

from tests.conftest import (
    NOW,
    FakeCheckSink,
    FakeClock,
    FakeContactList,
    FakeContactLists,
    FakeMonitorSource,
    RecordingSender,
    ScriptedProber,
    failed,
    make_monitor,
    ok,
)


@pytest.mark.parametrize(
    ("previous", "success", "expected"),
    [
        ("up", False, True),
        ("down", False, False),
        ("up", True, False),
        ("down", True, False),
        (MonitorStatus.UP, False, True),
    ],
)
def test_should_alert_only_on_up_to_down(previous, success: bool, expected: bool) -> None:
    assert should_alert(previous, success) is expected


def build(
    monitors,
    prober,
    *,
    checks=None,
    contact_lists=None,
    sender=None,
    clock=None,
    budget=55.0,
):
    clock = clock or FakeClock()
    source = FakeMonitorSource(monitors)
    checks = checks or FakeCheckSink()
    sender = sender or RecordingSender()
    orchestrator = CheckOrchestrator(
        monitors=source,
        checks=checks,
        retry=RetryController(prober, RetryConfig(retry_count=0), sleep=clock.sleep, clock=clock),
        resolver=ContactResolver(contact_lists or FakeContactLists()),
        dispatcher=AlertDispatcher(email_sender=sender, webhook_sender=sender, voice_sender=sender),
        execution_budget=budget,
        clock=clock,
        now=lambda: NOW,
    )
    return orchestrator, source, checks, sender


async def test_recently_checked_monitor_is_skipped() -> None:
    monitor = make_monitor(interval=60, last_check=NOW - timedelta(seconds=10))
    prober = ScriptedProber(ok())
    orchestrator, source, checks, _ = build([monitor], prober)

    summary = await orchestrator.run()

    assert summary.skipped == 1
    assert summary.checked == 0
    assert prober.calls == []
    assert checks.records == []
    assert source.updates == []


async def test_due_and_never_checked_monitors_are_probed() -> None:
    due = make_monitor(1, interval=60, last_check=NOW - timedelta(seconds=60))
    fresh = make_monitor(2, last_check=None)
    prober = ScriptedProber(ok())
    orchestrator, source, checks, _ = build([due, fresh], prober)

    summary = await orchestrator.run()

    assert summary.checked == 2
    assert [record[0] for record in checks.records] == [1, 2]
    assert source.updates == [(1, MonitorStatus.UP, NOW), (2, MonitorStatus.UP, NOW)]


async def test_paused_monitor_is_not_polled() -> None:
    prober = ScriptedProber(ok())
    orchestrator, _, checks, _ = build([make_monitor(status=MonitorStatus.PAUSED)], prober)

    summary = await orchestrator.run()

    assert summary.monitors_checked == 0
    assert prober.calls == []


async def test_up_to_down_transition_alerts_contacts() -> None:
    monitor = make_monitor(status=MonitorStatus.UP, alert_emails=["a@x.com"], contact_list_ids=[5])
    lists = FakeContactLists({5: FakeContactList(emails=["a@x.com", "b@x.com"])})
    orchestrator, source, checks, sender = build([monitor], ScriptedProber(failed()), contact_lists=lists)

    summary = await orchestrator.run()

    assert summary.alerts == 1
    assert sorted(call[1] for call in sender.calls) == ["a@x.com", "b@x.com"]
    assert source.updates[0][1] == MonitorStatus.DOWN
    assert checks.records[0][1].attempt_number == 1


async def test_staying_down_does_not_alert_again() -> None:
    monitor = make_monitor(status=MonitorStatus.DOWN, alert_emails=["a@x.com"])
    orchestrator, source, _, sender = build([monitor], ScriptedProber(failed()))

    summary = await orchestrator.run()

    assert summary.alerts == 0
    assert sender.calls == []
    assert source.updates[0][1] == MonitorStatus.DOWN


async def test_recovery_updates_status_without_alerting() -> None:
    monitor = make_monitor(status=MonitorStatus.DOWN, alert_emails=["a@x.com"])
    orchestrator, source, _, sender = build([monitor], ScriptedProber(ok()))

    summary = await orchestrator.run()

    assert summary.alerts == 0
    assert sender.calls == []
    assert source.updates[0][1] == MonitorStatus.UP


async def test_failing_email_still_reports_batch_success() -> None:
    monitor = make_monitor(alert_emails=["a@x.com", "b@x.com", "c@x.com"])
    sender = RecordingSender(fail_for={"a@x.com"})
    orchestrator, _, _, _ = build([monitor], ScriptedProber(failed()), sender=sender)

    summary = await orchestrator.run()

    assert summary.success is True
    assert summary.failed == 0
    assert len(sender.calls) == 3


async def test_one_monitor_error_does_not_stop_the_batch() -> None:
    checks = FakeCheckSink(fail_for={1})
    orchestrator, source, _, _ = build([make_monitor(1), make_monitor(2)], ScriptedProber(ok()), checks=checks)

    summary = await orchestrator.run()

    assert summary.failed == 1
    assert summary.checked == 1
    assert [record[0] for record in checks.records] == [2]
    assert [update[0] for update in source.updates] == [2]


async def test_loading_monitors_failure_propagates() -> None:
    orchestrator, source, _, _ = build([], ScriptedProber(ok()))
    source.error = ConnectionError("database unreachable")

    with pytest.raises(ConnectionError):
        await orchestrator.run()


async def test_budget_exhaustion_defers_remaining_monitors() -> None:
    clock = FakeClock()
    prober = ScriptedProber(ok(), on_probe=lambda url: clock.advance(30))
    monitors = [make_monitor(i) for i in (1, 2, 3)]
    orchestrator, _, checks, _ = build(monitors, prober, clock=clock, budget=55)

    summary = await orchestrator.run()

    assert summary.checked == 2
    assert summary.deferred == 1
    assert summary.budget_exhausted is True
    assert [record[0] for record in checks.records] == [1, 2]
    assert summary.to_dict()["budgetExhausted"] is True


async def test_check_monitor_ignores_interval_gate() -> None:
    monitor = make_monitor(interval=60, last_check=NOW - timedelta(seconds=5), alert_emails=["a@x.com"])
    orchestrator, _, checks, sender = build([monitor], ScriptedProber(failed()))

    outcome = await orchestrator.check_monitor(monitor)

    assert outcome.previous_status == MonitorStatus.UP
    assert outcome.current_status == MonitorStatus.DOWN
    assert outcome.alerted is True
    assert outcome.dispatch.sent == 1
    assert len(checks.records) == 1
    data = outcome.to_dict()
    assert data["previousStatus"] == "up"
    assert data["checkResult"]["success"] is False
