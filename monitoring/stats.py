"""
Uptime and response-time statistics over check history.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, Optional, Sequence

from utils.helpers import TimeHelper


def uptime(checks: Iterable[Any]) -> float:
    """
    Percentage of successful checks.

    Accepts ORM rows, CheckResult objects or plain mappings with a
    ``success`` key. An empty history counts as 100% up.
    """
    total = 0
    successful = 0
    for check in checks:
        total += 1
        ok = check.get("success") if isinstance(check, dict) else check.success
        if ok:
            successful += 1

    if total == 0:
        return 100.0
    return successful / total * 100


def average_response_time(times: Iterable[float]) -> float:
    values = list(times)
    if not values:
        return 0.0
    return sum(values) / len(values)


@dataclass
class MonitorStats:
    """Rolling statistics for one monitor."""

    monitor_id: Any
    uptime_24h: float
    uptime_7d: float
    uptime_30d: float
    avg_response_time: float
    total_checks: int
    successful_checks: int
    failed_checks: int
    last_updated: datetime

    @classmethod
    def from_checks(
        cls,
        monitor_id: Any,
        checks: Sequence[Any],
        now: Optional[datetime] = None,
    ) -> "MonitorStats":
        """
        Build statistics from the last 30 days of checks.

        Checks older than 30 days are ignored.
        """
        now = now or TimeHelper.utc_now()
        day_ago = now - timedelta(hours=24)
        week_ago = now - timedelta(days=7)
        month_ago = now - timedelta(days=30)

        month = [c for c in checks if TimeHelper.to_naive_utc(c.timestamp) >= month_ago]
        week = [c for c in month if TimeHelper.to_naive_utc(c.timestamp) >= week_ago]
        day = [c for c in week if TimeHelper.to_naive_utc(c.timestamp) >= day_ago]

        successful = [c for c in month if c.success]

        return cls(
            monitor_id=monitor_id,
            uptime_24h=uptime(day),
            uptime_7d=uptime(week),
            uptime_30d=uptime(month),
            avg_response_time=average_response_time(c.response_time for c in successful),
            total_checks=len(month),
            successful_checks=len(successful),
            failed_checks=len(month) - len(successful),
            last_updated=now,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "monitorId": self.monitor_id,
            "uptime24h": round(self.uptime_24h, 2),
            "uptime7d": round(self.uptime_7d, 2),
            "uptime30d": round(self.uptime_30d, 2),
            "avgResponseTime": round(self.avg_response_time),
            "totalChecks": self.total_checks,
            "successfulChecks": self.successful_checks,
            "failedChecks": self.failed_checks,
            "lastUpdated": TimeHelper.isoformat(self.last_updated),
        }
