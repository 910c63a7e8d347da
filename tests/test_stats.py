from __future__ import annotations

from datetime import timedelta

from monitoring.prober import CheckResult
from monitoring.stats import MonitorStats, average_response_time, uptime

from tests.conftest import NOW


def test_uptime_of_empty_history_is_100() -> None:
    assert uptime([]) == 100


def test_uptime_is_percentage_of_successes() -> None:
    assert uptime([{"success": True}, {"success": False}]) == 50


def test_average_response_time() -> None:
    assert average_response_time([]) == 0
    assert average_response_time([100, 200, 300]) == 200


def _check(hours_ago: float, success: bool, response_time: int) -> CheckResult:
    return CheckResult(
        success=success,
        response_time=response_time,
        timestamp=NOW - timedelta(hours=hours_ago),
    )


def test_monitor_stats_windows() -> None:
    checks = [
        _check(1, True, 100),
        _check(2, False, 900),
        _check(24 * 3, True, 300),
        _check(24 * 20, False, 50),
        _check(24 * 40, True, 10),
    ]

    stats = MonitorStats.from_checks(1, checks, now=NOW)

    assert stats.uptime_24h == 50
    assert round(stats.uptime_7d, 2) == 66.67
    assert stats.uptime_30d == 50
    assert stats.total_checks == 4
    assert stats.successful_checks == 2
    assert stats.failed_checks == 2
    assert stats.avg_response_time == 200

    data = stats.to_dict()
    assert data["uptime7d"] == 66.67
    assert data["avgResponseTime"] == 200
    assert data["lastUpdated"].endswith("Z")


def test_monitor_stats_without_checks() -> None:
    stats = MonitorStats.from_checks(3, [], now=NOW)

    assert stats.uptime_24h == 100
    assert stats.total_checks == 0
    assert stats.avg_response_time == 0
