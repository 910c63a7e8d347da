"""
============================================================================
UPTIME MONITOR - ENDPOINT PROBER
============================================================================
Issues one bounded HTTP GET against a monitor target and classifies
the outcome as a CheckResult. The prober never raises: every transport
failure is folded into a ``success=False`` result.
============================================================================
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

import httpx

from config.constants import Defaults
from utils.helpers import StringHelper, TimeHelper
from utils.logger import get_logger


logger = get_logger(__name__)

ERROR_DETAIL_LIMIT = 200


# ============================================================================
# CHECK RESULT
# ============================================================================

class CheckResult:
    """
    Value object carrying the outcome of one probe or of a whole
    probe-with-retries sequence.

    ``response_time`` is in integer milliseconds. ``attempt_number`` is
    only set by the retry controller.
    """

    __slots__ = (
        "success", "response_time", "status_code", "error",
        "error_type", "timestamp", "attempt_number",
    )

    def __init__(
        self,
        success: bool,
        response_time: int = 0,
        status_code: Optional[int] = None,
        error: Optional[str] = None,
        error_type: Optional[str] = None,
        timestamp: Optional[datetime] = None,
        attempt_number: Optional[int] = None,
    ):
        self.success = success
        self.response_time = response_time
        self.status_code = status_code
        self.error = error
        self.error_type = error_type
        self.timestamp = timestamp or TimeHelper.utc_now()
        self.attempt_number = attempt_number

    @classmethod
    def failure(
        cls,
        error: str,
        error_type: str,
        response_time: int = 0,
        status_code: Optional[int] = None,
    ) -> "CheckResult":
        return cls(
            success=False,
            response_time=response_time,
            status_code=status_code,
            error=error,
            error_type=error_type,
        )

    def with_changes(self, **changes: Any) -> "CheckResult":
        """Return a copy with the given fields replaced."""
        values = {slot: getattr(self, slot) for slot in self.__slots__}
        values.update(changes)
        return CheckResult(**values)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": self.success,
            "responseTime": self.response_time,
            "timestamp": TimeHelper.isoformat(self.timestamp),
        }
        if self.status_code is not None:
            data["statusCode"] = self.status_code
        if self.error is not None:
            data["error"] = self.error
        if self.attempt_number is not None:
            data["attemptNumber"] = self.attempt_number
        return data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CheckResult):
            return NotImplemented
        return all(getattr(self, slot) == getattr(other, slot) for slot in self.__slots__)

    def __repr__(self) -> str:
        return (
            f"CheckResult(success={self.success}, status_code={self.status_code}, "
            f"response_time={self.response_time}, attempt_number={self.attempt_number}, "
            f"error={self.error!r})"
        )


def is_success_status(status_code: int) -> bool:
    """2xx and 3xx responses count as up."""
    return 200 <= status_code < 400


# ============================================================================
# ENDPOINT PROBER
# ============================================================================

class EndpointProber:
    """
    Performs a single HTTP / HTTPS GET using an httpx async client.

    Redirects are followed up to ``max_redirects`` hops. The response
    body is never read; classification only needs the final status.
    """

    def __init__(
        self,
        max_redirects: int = Defaults.MAX_REDIRECTS,
        user_agent: str = Defaults.USER_AGENT,
        verify_ssl: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.max_redirects = max_redirects
        self.user_agent = user_agent
        self.verify_ssl = verify_ssl
        self._transport = transport
        self._clock = clock

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            max_redirects=self.max_redirects,
            verify=self.verify_ssl,
            headers={"User-Agent": self.user_agent},
            transport=self._transport,
        )

    def _elapsed_ms(self, start: float) -> int:
        return int(round((self._clock() - start) * 1000))

    async def _exchange(self, url: str, timeout: float) -> Tuple[int, str]:
        async with self._client(timeout) as client:
            async with client.stream("GET", url) as response:
                return response.status_code, response.reason_phrase

    async def probe(self, url: str, timeout: float) -> CheckResult:
        """
        Execute one GET against *url*.

        Parameters
        ----------
        url : str
            Target URL.
        timeout : float
            Wall-clock budget in seconds for the whole attempt,
            redirect hops included.

        Returns
        -------
        CheckResult
            Never raises.
        """
        start = self._clock()

        try:
            status_code, reason = await asyncio.wait_for(
                self._exchange(url, timeout),
                timeout=timeout,
            )
            elapsed = self._elapsed_ms(start)

            if is_success_status(status_code):
                logger.debug(f"[HTTP] {url} → {status_code} in {elapsed}ms")
                return CheckResult(
                    success=True,
                    response_time=elapsed,
                    status_code=status_code,
                )

            error = f"HTTP {status_code} {reason}".rstrip()
            logger.debug(f"[HTTP] {url} → {error} in {elapsed}ms")
            return CheckResult.failure(
                error,
                "HTTPStatus",
                response_time=elapsed,
                status_code=status_code,
            )

        except asyncio.TimeoutError:
            return CheckResult.failure(
                "Request timed out",
                "Timeout",
                response_time=self._elapsed_ms(start),
            )
        except httpx.TooManyRedirects:
            return CheckResult.failure(
                f"Too many redirects (limit {self.max_redirects})",
                "TooManyRedirects",
                response_time=self._elapsed_ms(start),
            )
        except httpx.ConnectTimeout:
            return CheckResult.failure(
                "Connection timed out",
                "ConnectTimeout",
                response_time=self._elapsed_ms(start),
            )
        except httpx.ReadTimeout:
            return CheckResult.failure(
                "Read timed out",
                "ReadTimeout",
                response_time=self._elapsed_ms(start),
            )
        except httpx.TimeoutException:
            return CheckResult.failure(
                "Request timed out",
                "Timeout",
                response_time=self._elapsed_ms(start),
            )
        except httpx.ConnectError as e:
            return CheckResult.failure(
                f"Connection error: {StringHelper.truncate(str(e) or type(e).__name__, ERROR_DETAIL_LIMIT)}",
                "ConnectError",
                response_time=self._elapsed_ms(start),
            )
        except httpx.HTTPError as e:
            return CheckResult.failure(
                f"Request failed: {StringHelper.truncate(str(e) or type(e).__name__, ERROR_DETAIL_LIMIT)}",
                type(e).__name__,
                response_time=self._elapsed_ms(start),
            )
        except Exception as e:
            logger.opt(exception=e).debug(f"[HTTP] {url} raised unexpectedly")
            return CheckResult.failure(
                f"Unexpected error: {StringHelper.truncate(str(e) or type(e).__name__, ERROR_DETAIL_LIMIT)}",
                type(e).__name__,
                response_time=self._elapsed_ms(start),
            )
