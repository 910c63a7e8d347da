"""
============================================================================
UPTIME MONITOR - RETRY CONTROLLER
============================================================================
Wraps the endpoint prober with exponential backoff and a fixed attempt
budget, producing one final CheckResult per monitor check.
============================================================================
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from config.constants import Defaults
from monitoring.interfaces import Prober
from monitoring.prober import CheckResult
from utils.helpers import StringHelper
from utils.logger import get_logger


logger = get_logger(__name__)


# ============================================================================
# RETRY CONFIGURATION
# ============================================================================

@dataclass(frozen=True)
class RetryConfig:
    """
    Retry policy for probe sequences.

    Attributes:
        retry_count: retries after the first attempt
        initial_delay: delay before the first retry (ms)
        multiplier: growth factor per retry
        max_delay: cap for a single delay (ms)
    """

    retry_count: int = Defaults.RETRY_COUNT
    initial_delay: int = Defaults.RETRY_INITIAL_DELAY_MS
    multiplier: float = Defaults.RETRY_MULTIPLIER
    max_delay: int = Defaults.RETRY_MAX_DELAY_MS

    def __post_init__(self) -> None:
        if self.retry_count < 0:
            raise ValueError("retry_count must be >= 0")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be >= 0")
        if self.multiplier < 0:
            raise ValueError("multiplier must be >= 0")

    @property
    def max_attempts(self) -> int:
        return self.retry_count + 1


def backoff_delay(attempt_index: int, config: RetryConfig) -> float:
    """
    Delay in milliseconds before retry number ``attempt_index`` (0-indexed).

    >>> backoff_delay(0, RetryConfig(initial_delay=1000, multiplier=2, max_delay=5000))
    1000
    >>> backoff_delay(3, RetryConfig(initial_delay=1000, multiplier=2, max_delay=5000))
    5000
    """
    try:
        delay = config.initial_delay * config.multiplier ** attempt_index
    except OverflowError:
        return config.max_delay
    return min(delay, config.max_delay)


# ============================================================================
# RETRY CONTROLLER
# ============================================================================

class RetryController:
    """
    Runs up to ``retry_count + 1`` probes, sleeping with capped
    exponential backoff between failures.

    The returned result's ``response_time`` is the cumulative time of
    the whole sequence, sleeps included, and ``attempt_number`` is the
    number of attempts actually made. Never raises.
    """

    def __init__(
        self,
        prober: Prober,
        config: Optional[RetryConfig] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.prober = prober
        self.config = config or RetryConfig()
        self._sleep = sleep
        self._clock = clock

    def _elapsed_ms(self, started: float) -> int:
        return int(round((self._clock() - started) * 1000))

    async def _attempt(self, url: str, timeout: float) -> CheckResult:
        try:
            return await self.prober.probe(url, timeout)
        except Exception as e:
            logger.opt(exception=e).error(f"Prober raised for {url}")
            return CheckResult.failure(
                f"Unexpected error: {StringHelper.truncate(str(e) or type(e).__name__, 200)}",
                type(e).__name__,
            )

    async def run(
        self,
        url: str,
        timeout: float,
        config: Optional[RetryConfig] = None,
    ) -> CheckResult:
        """
        Probe *url* with retries.

        Args:
            url: Target URL
            timeout: Per-attempt timeout in seconds
            config: Overrides the controller's policy for this call

        Returns:
            Final CheckResult
        """
        config = config or self.config
        started = self._clock()
        total = config.max_attempts
        result: Optional[CheckResult] = None

        for attempt in range(1, total + 1):
            result = await self._attempt(url, timeout)

            if result.success:
                if attempt > 1:
                    logger.info(f"{url} succeeded on attempt {attempt}/{total}")
                return result.with_changes(
                    response_time=self._elapsed_ms(started),
                    attempt_number=attempt,
                )

            if attempt < total:
                delay = backoff_delay(attempt - 1, config)
                logger.debug(
                    f"{url} attempt {attempt}/{total} failed ({result.error}), "
                    f"retrying in {delay:.0f}ms"
                )
                await self._sleep(delay / 1000)

        logger.info(f"{url} failed after {total} attempt(s): {result.error}")
        return result.with_changes(
            response_time=self._elapsed_ms(started),
            attempt_number=total,
        )
