"""
============================================================================
UPTIME MONITOR - BACKGROUND TASK SCHEDULER
============================================================================
A lightweight, asyncio-native periodic job runner used when the engine
is hosted in a long-lived process instead of an external cron.

Registered Jobs (see ``register_monitor_jobs``)
-----------------------------------------------
1.  monitor_checks          (every MONITOR_RUN_INTERVAL seconds)
    Runs one batch of monitor checks.

2.  check_history_prune     (every MONITOR_PRUNE_INTERVAL seconds)
    Deletes check records older than MONITOR_CHECK_RETENTION_DAYS.

A job that is still running when it comes due again is not started a
second time, so batches never overlap within one process.
============================================================================
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional, Set

from utils.logger import get_logger

if TYPE_CHECKING:
    from config.settings import MonitoringSettings
    from monitoring.service import MonitorService


logger = get_logger(__name__)


# ============================================================================
# JOB DEFINITION
# ============================================================================

@dataclass
class ScheduledJob:
    """
    Describes a single periodic background job.

    Attributes
    ----------
    name : str
        Human-readable identifier (used in logs).
    interval_seconds : float
        How often the job runs.
    coroutine_factory : Callable
        An async callable (no arguments) that performs the work.
    enabled : bool
        Can be toggled at runtime.
    running : bool
        True while an execution is in flight.
    last_run : Optional[float]
        Epoch timestamp of the last successful execution.
    next_run : float
        Epoch timestamp when the job should next execute.
    run_count : int
        Total number of successful executions since startup.
    error_count : int
        Total number of failed executions since startup.
    skipped_count : int
        Ticks where the job was due but still running.
    """
    name: str
    interval_seconds: float
    coroutine_factory: Callable[[], Awaitable[Any]]
    enabled: bool = True
    running: bool = False
    last_run: Optional[float] = None
    next_run: float = field(default_factory=time.time)
    run_count: int = 0
    error_count: int = 0
    skipped_count: int = 0


# ============================================================================
# SCHEDULER
# ============================================================================

class Scheduler:
    """
    Asyncio-based periodic job scheduler.

    Usage
    -----
        scheduler = Scheduler()
        scheduler.register_job("my_job", 300, my_async_func)
        await scheduler.start()
        # ... later ...
        await scheduler.stop()
    """

    def __init__(
        self,
        tick_interval: float = 1.0,
        clock: Callable[[], float] = time.time,
    ):
        self._jobs: Dict[str, ScheduledJob] = {}
        self._running = False
        self._loop_task: Optional[asyncio.Task] = None
        self._job_tasks: Set[asyncio.Task] = set()
        self._tick_interval = tick_interval
        self._clock = clock

    # ------------------------------------------------------------------
    # JOB REGISTRATION
    # ------------------------------------------------------------------

    def register_job(
        self,
        name: str,
        interval_seconds: float,
        coroutine_factory: Callable[[], Awaitable[Any]],
        enabled: bool = True,
        run_immediately: bool = True,
    ) -> ScheduledJob:
        """
        Register a new periodic job.

        Parameters
        ----------
        name : str
            Unique job name.
        interval_seconds : float
            Period in seconds.
        coroutine_factory : Callable
            An async callable that takes no arguments.
        enabled : bool
            Whether the job starts enabled.
        run_immediately : bool
            Run on the first tick instead of after one interval.
        """
        if name in self._jobs:
            logger.warning(f"[Scheduler] Job '{name}' already registered, overwriting")

        now = self._clock()
        job = ScheduledJob(
            name=name,
            interval_seconds=interval_seconds,
            coroutine_factory=coroutine_factory,
            enabled=enabled,
            next_run=now if run_immediately else now + interval_seconds,
        )
        self._jobs[name] = job
        logger.debug(f"[Scheduler] Registered job '{name}' (interval={interval_seconds}s)")
        return job

    def get_job(self, name: str) -> Optional[ScheduledJob]:
        return self._jobs.get(name)

    def enable_job(self, name: str) -> bool:
        """Enable a job by name. Returns True if found."""
        if name in self._jobs:
            self._jobs[name].enabled = True
            return True
        return False

    def disable_job(self, name: str) -> bool:
        """Disable a job by name. Returns True if found."""
        if name in self._jobs:
            self._jobs[name].enabled = False
            return True
        return False

    # ------------------------------------------------------------------
    # LIFECYCLE
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the scheduler loop."""
        if self._running:
            logger.warning("Scheduler is already running")
            return
        self._running = True
        self._loop_task = asyncio.create_task(self._main_loop())
        logger.info(f"Scheduler started with {len(self._jobs)} job(s)")

    async def stop(self) -> None:
        """Stop the scheduler loop and wait for in-flight jobs."""
        self._running = False
        if self._loop_task:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None

        if self._job_tasks:
            await asyncio.gather(*self._job_tasks, return_exceptions=True)
        logger.info("Scheduler stopped")

    # ------------------------------------------------------------------
    # MAIN LOOP
    # ------------------------------------------------------------------

    async def _main_loop(self) -> None:
        logger.info("[Scheduler] Main loop started")
        while self._running:
            self.run_pending()
            try:
                await asyncio.sleep(self._tick_interval)
            except asyncio.CancelledError:
                break
        logger.info("[Scheduler] Main loop exited")

    def run_pending(self) -> List[asyncio.Task]:
        """
        Launch every enabled job whose next_run has arrived.

        Must be called from a running event loop.

        Returns
        -------
        list of asyncio.Task
            Tasks started during this tick.
        """
        now = self._clock()
        started: List[asyncio.Task] = []

        for job in self._jobs.values():
            if not job.enabled or now < job.next_run:
                continue

            job.next_run = now + job.interval_seconds

            if job.running:
                job.skipped_count += 1
                logger.warning(f"[Scheduler] Job '{job.name}' still running; skipping this run")
                continue

            job.running = True
            task = asyncio.create_task(self._execute_job(job))
            self._job_tasks.add(task)
            task.add_done_callback(self._job_tasks.discard)
            started.append(task)

        return started

    # ------------------------------------------------------------------
    # JOB EXECUTION
    # ------------------------------------------------------------------

    async def _execute_job(self, job: ScheduledJob) -> None:
        """
        Run a single job, capture timing and errors.
        """
        start_time = time.monotonic()
        try:
            logger.debug(f"[Scheduler] Running job '{job.name}'")
            await job.coroutine_factory()

            job.run_count += 1
            job.last_run = self._clock()
            logger.debug(
                f"[Scheduler] Job '{job.name}' completed in {time.monotonic() - start_time:.2f}s "
                f"(run #{job.run_count})"
            )

        except Exception as e:
            job.error_count += 1
            logger.opt(exception=e).error(
                f"[Scheduler] Job '{job.name}' FAILED after {time.monotonic() - start_time:.2f}s: {e}"
            )

        finally:
            job.running = False

    # ------------------------------------------------------------------
    # DIAGNOSTICS
    # ------------------------------------------------------------------

    def get_job_stats(self) -> List[Dict[str, Any]]:
        """Return status of all registered jobs."""
        def iso(ts: Optional[float]) -> Optional[str]:
            if ts is None:
                return None
            return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()

        return [
            {
                "name": job.name,
                "interval_seconds": job.interval_seconds,
                "enabled": job.enabled,
                "running": job.running,
                "run_count": job.run_count,
                "error_count": job.error_count,
                "skipped_count": job.skipped_count,
                "last_run": iso(job.last_run),
                "next_run": iso(job.next_run),
            }
            for job in self._jobs.values()
        ]


# ============================================================================
# MONITOR JOBS
# ============================================================================

def register_monitor_jobs(
    scheduler: Scheduler,
    service: "MonitorService",
    settings: "MonitoringSettings",
) -> None:
    """Register the batch-run and history-prune jobs."""
    scheduler.register_job(
        "monitor_checks",
        interval_seconds=settings.run_interval,
        coroutine_factory=service.run_batch,
    )
    scheduler.register_job(
        "check_history_prune",
        interval_seconds=settings.prune_interval,
        coroutine_factory=service.prune_history,
        run_immediately=False,
    )
