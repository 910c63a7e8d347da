"""
============================================================================
UPTIME MONITOR - CHECK ORCHESTRATOR
============================================================================
Runs one batch of monitor checks inside a wall-clock execution budget.

Per monitor, strictly in listing order and one at a time:

    interval gate → probe with retries → record check
        → update status / last_check → (up → down only) resolve
        contacts → dispatch alerts

A failure while processing one monitor is logged and the batch moves
on. Only a failure to load monitors at batch start propagates.
============================================================================
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Union

from config.constants import Defaults, MonitorStatus
from monitoring.contacts import ContactResolver
from monitoring.dispatcher import AlertDispatcher, DispatchReport
from monitoring.interfaces import CheckSink, MonitorRecord, MonitorSource
from monitoring.prober import CheckResult
from monitoring.retry import RetryController
from utils.helpers import TimeHelper
from utils.logger import get_logger


logger = get_logger(__name__)


def should_alert(previous_status: Union[MonitorStatus, str], success: bool) -> bool:
    """
    Edge-triggered alert rule: fire only on an up → down transition.

    >>> should_alert("up", False)
    True
    >>> should_alert("down", False)
    False
    """
    return MonitorStatus(previous_status) == MonitorStatus.UP and not success


# ============================================================================
# RESULT OBJECTS
# ============================================================================

@dataclass
class BatchSummary:
    """Outcome of one orchestrator invocation."""

    monitors_checked: int
    checked: int = 0
    skipped: int = 0
    deferred: int = 0
    failed: int = 0
    alerts: int = 0
    budget_exhausted: bool = False
    duration_ms: int = 0
    success: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "monitorsChecked": self.monitors_checked,
            "checked": self.checked,
            "skipped": self.skipped,
            "deferred": self.deferred,
            "failed": self.failed,
            "alerts": self.alerts,
            "budgetExhausted": self.budget_exhausted,
            "durationMs": self.duration_ms,
        }


@dataclass
class ManualCheckOutcome:
    """Outcome of checking a single monitor."""

    check_result: CheckResult
    previous_status: MonitorStatus
    current_status: MonitorStatus
    alerted: bool = False
    dispatch: Optional[DispatchReport] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "checkResult": self.check_result.to_dict(),
            "previousStatus": self.previous_status.value,
            "currentStatus": self.current_status.value,
            "alerted": self.alerted,
        }
        if self.dispatch is not None:
            data["dispatch"] = self.dispatch.to_dict()
        return data


# ============================================================================
# CHECK ORCHESTRATOR
# ============================================================================

class CheckOrchestrator:
    """
    Sequential, time-budgeted scheduler for monitor checks.

    Parameters
    ----------
    monitors : MonitorSource
        Supplies pollable monitors and persists status changes.
    checks : CheckSink
        Append-only check history.
    retry : RetryController
        Probe-with-backoff runner.
    resolver : ContactResolver
        Contact expansion for alerts.
    dispatcher : AlertDispatcher
        Per-contact alert delivery.
    execution_budget : float
        Seconds after which no further monitors are started.
    clock : callable
        Monotonic seconds, used for the budget.
    now : callable
        Naive-UTC wall clock, used for the interval gate and last_check.
    """

    def __init__(
        self,
        monitors: MonitorSource,
        checks: CheckSink,
        retry: RetryController,
        resolver: ContactResolver,
        dispatcher: AlertDispatcher,
        execution_budget: float = Defaults.EXECUTION_BUDGET_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = TimeHelper.utc_now,
    ):
        self.monitors = monitors
        self.checks = checks
        self.retry = retry
        self.resolver = resolver
        self.dispatcher = dispatcher
        self.execution_budget = execution_budget
        self._clock = clock
        self._now = now

    # ------------------------------------------------------------------
    # BATCH
    # ------------------------------------------------------------------

    async def run(self) -> BatchSummary:
        """
        Run one batch over every pollable monitor.

        Raises
        ------
        Exception
            Whatever the monitor source raises while loading; nothing
            raised after that point escapes.
        """
        started = self._clock()
        monitors = list(await self.monitors.list_pollable())
        summary = BatchSummary(monitors_checked=len(monitors))

        logger.info(f"Running checks for {len(monitors)} monitor(s)")

        for index, monitor in enumerate(monitors):
            elapsed = self._clock() - started
            if elapsed > self.execution_budget:
                summary.budget_exhausted = True
                summary.deferred = len(monitors) - index
                logger.warning(
                    f"Execution budget of {self.execution_budget:.0f}s exhausted after "
                    f"{elapsed:.1f}s; deferring {summary.deferred} monitor(s) to the next run"
                )
                break

            try:
                if not self._is_due(monitor):
                    summary.skipped += 1
                    continue

                outcome = await self._check(monitor)
                summary.checked += 1
                if outcome.alerted:
                    summary.alerts += 1

            except Exception as e:
                summary.failed += 1
                logger.opt(exception=e).error(
                    f"Error checking monitor {getattr(monitor, 'id', '?')}: {e}"
                )

        summary.duration_ms = int(round((self._clock() - started) * 1000))
        logger.info(
            f"Monitor checks completed: {summary.checked} checked, {summary.skipped} skipped, "
            f"{summary.deferred} deferred, {summary.failed} failed in {summary.duration_ms}ms"
        )
        return summary

    def _is_due(self, monitor: MonitorRecord) -> bool:
        if MonitorStatus(monitor.status) not in MonitorStatus.pollable():
            logger.debug(f"Monitor {monitor.id} is {monitor.status}; not polled")
            return False

        since = TimeHelper.seconds_since(monitor.last_check, self._now())
        if since < monitor.interval:
            logger.debug(
                f"Skipping monitor {monitor.id}: checked {since:.0f}s ago, "
                f"interval {monitor.interval}s"
            )
            return False

        return True

    # ------------------------------------------------------------------
    # SINGLE MONITOR
    # ------------------------------------------------------------------

    async def check_monitor(self, monitor: MonitorRecord) -> ManualCheckOutcome:
        """
        Check one monitor now, ignoring the interval gate and budget.

        Errors propagate to the caller.
        """
        return await self._check(monitor)

    async def _check(self, monitor: MonitorRecord) -> ManualCheckOutcome:
        previous = MonitorStatus(monitor.status)

        result = await self.retry.run(monitor.url, monitor.timeout)

        await self.checks.record_check(monitor.id, result)

        current = MonitorStatus.UP if result.success else MonitorStatus.DOWN
        await self.monitors.update_status(monitor.id, current, self._now())

        logger.info(
            f"Monitor {monitor.name} ({monitor.url}): {current.value} "
            f"({result.response_time}ms)"
        )

        outcome = ManualCheckOutcome(
            check_result=result,
            previous_status=previous,
            current_status=current,
        )

        if should_alert(previous, result.success):
            logger.warning(
                f"Monitor {monitor.name} went down: {result.error or Defaults.UNKNOWN_ERROR}"
            )
            contacts = await self.resolver.resolve(monitor)
            outcome.dispatch = await self.dispatcher.dispatch(monitor, contacts, result)
            outcome.alerted = True

        elif previous == MonitorStatus.DOWN and result.success:
            logger.info(f"Monitor {monitor.name} recovered")

        return outcome
