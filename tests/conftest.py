from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pytest

from config.constants import MonitorStatus
from config.settings import DatabaseSettings, DatabaseType
from database.connection import DatabaseManager
from monitoring.prober import CheckResult


NOW = datetime(2024, 5, 1, 12, 0, 0)


# ----------------------------------------------------------------------
# Engine fakes
# ----------------------------------------------------------------------

@dataclass
class FakeMonitor:
    id: int
    name: str = "Example"
    url: str = "https://example.com"
    interval: int = 60
    timeout: int = 30
    status: MonitorStatus = MonitorStatus.UP
    last_check: Optional[datetime] = None
    alert_emails: List[str] = field(default_factory=list)
    alert_phones: List[str] = field(default_factory=list)
    alert_webhooks: List[str] = field(default_factory=list)
    contact_list_ids: List[Any] = field(default_factory=list)


def make_monitor(monitor_id: int = 1, **overrides: Any) -> FakeMonitor:
    overrides.setdefault("name", f"Monitor {monitor_id}")
    overrides.setdefault("url", f"https://service-{monitor_id}.example.com/health")
    return FakeMonitor(id=monitor_id, **overrides)


class FakeMonitorSource:
    def __init__(self, monitors: Iterable[FakeMonitor] = (), error: Optional[Exception] = None):
        self.monitors = list(monitors)
        self.error = error
        self.updates: List[tuple] = []

    async def list_pollable(self) -> List[FakeMonitor]:
        if self.error is not None:
            raise self.error
        return [m for m in self.monitors if m.status in MonitorStatus.pollable()]

    async def update_status(self, monitor_id: Any, status: MonitorStatus, last_check: datetime) -> None:
        self.updates.append((monitor_id, status, last_check))
        for monitor in self.monitors:
            if monitor.id == monitor_id:
                monitor.status = status
                monitor.last_check = last_check


class FakeCheckSink:
    def __init__(self, fail_for: Iterable[Any] = ()):
        self.records: List[tuple] = []
        self.fail_for = set(fail_for)

    async def record_check(self, monitor_id: Any, result: CheckResult) -> None:
        if monitor_id in self.fail_for:
            raise RuntimeError(f"write failed for {monitor_id}")
        self.records.append((monitor_id, result))


@dataclass
class FakeContactList:
    emails: List[str] = field(default_factory=list)
    phones: List[str] = field(default_factory=list)
    webhooks: List[str] = field(default_factory=list)


class FakeContactLists:
    def __init__(self, lists: Optional[Dict[Any, FakeContactList]] = None, error: Optional[Exception] = None):
        self.lists = lists or {}
        self.error = error
        self.lookups: List[list] = []

    async def lookup_lists(self, ids: Sequence[Any]) -> List[FakeContactList]:
        self.lookups.append(list(ids))
        if self.error is not None:
            raise self.error
        return [self.lists[i] for i in ids if i in self.lists]


class ScriptedProber:
    """Returns queued results in order; the last one repeats."""

    def __init__(self, *results: CheckResult, on_probe=None):
        self.results = list(results)
        self.calls: List[tuple] = []
        self.on_probe = on_probe

    async def probe(self, url: str, timeout: float) -> CheckResult:
        self.calls.append((url, timeout))
        if self.on_probe is not None:
            self.on_probe(url)
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]


def ok(status_code: int = 200, response_time: int = 40) -> CheckResult:
    return CheckResult(success=True, status_code=status_code, response_time=response_time)


def failed(error: str = "HTTP 500 Internal Server Error", status_code: Optional[int] = 500) -> CheckResult:
    return CheckResult.failure(error, "HTTPStatus", response_time=25, status_code=status_code)


class RecordingSender:
    """Implements every contact channel; raises for recipients in ``fail_for``."""

    def __init__(self, fail_for: Iterable[str] = ()):
        self.fail_for = set(fail_for)
        self.calls: List[tuple] = []

    def _maybe_fail(self, recipient: str) -> None:
        if recipient in self.fail_for:
            raise RuntimeError(f"delivery to {recipient} failed")

    async def send_email(self, to: str, monitor_name: str, url: str, error_message: str) -> None:
        self.calls.append(("email", to, monitor_name, url, error_message))
        self._maybe_fail(to)

    async def send_webhook(self, url: str, monitor_name: str, monitor_url: str, error_message: str) -> None:
        self.calls.append(("webhook", url, monitor_name, monitor_url, error_message))
        self._maybe_fail(url)

    async def send_voice_call(self, to: str, monitor_name: str, url: str) -> None:
        self.calls.append(("voice", to, monitor_name, url))
        self._maybe_fail(to)


class FakeClock:
    """Monotonic clock whose ``sleep`` advances time instead of waiting."""

    def __init__(self, start: float = 1000.0):
        self.value = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.value += seconds


def minutes_ago(minutes: float, now: datetime = NOW) -> datetime:
    return now - timedelta(minutes=minutes)


# ----------------------------------------------------------------------
# Database
# ----------------------------------------------------------------------

@pytest.fixture
def db_settings() -> DatabaseSettings:
    return DatabaseSettings(type=DatabaseType.SQLITE, sqlite_path=":memory:")


@pytest.fixture
async def db(db_settings):
    manager = DatabaseManager(db_settings)
    await manager.create_tables()
    yield manager
    await manager.close()
