"""
============================================================================
UPTIME MONITOR - TRIGGER SERVER
============================================================================
A lightweight aiohttp HTTP server that lets an external scheduler (cron
service, platform cron job, uptime pinger) drive the engine.

Routes
------
    GET  /health                → 200 JSON liveness
    POST /run                   → run one batch of checks
    POST /monitors/{id}/check   → check one monitor now
    GET  /monitors/{id}/stats   → uptime / response-time statistics
    POST /test-push             → push a test notification to all devices

When SERVER_CRON_SECRET is set, every POST route requires the header
``Authorization: Bearer <secret>`` and answers 401 otherwise.
============================================================================
"""

from __future__ import annotations

import hmac
import time
from typing import TYPE_CHECKING, Any, Dict, Optional

from aiohttp import web

from config.settings import ServerSettings
from exceptions import DatabaseNotFoundError
from utils.helpers import TimeHelper
from utils.logger import get_logger

if TYPE_CHECKING:
    from monitoring.service import MonitorService


logger = get_logger(__name__)


def _timestamp() -> str:
    return TimeHelper.isoformat(TimeHelper.utc_now())


def _error(status: int, message: str) -> web.Response:
    return web.json_response(
        {"success": False, "error": message, "timestamp": _timestamp()},
        status=status,
    )


class TriggerServer:
    """
    aiohttp front end for ``MonitorService``.

    Attributes
    ----------
    app : aiohttp.web.Application
    _runner : aiohttp.web.AppRunner
    _site : aiohttp.web.TCPSite
    _start_time : float          epoch seconds when the server started
    _request_count : int         total requests served
    """

    def __init__(self, service: "MonitorService", settings: Optional[ServerSettings] = None):
        self.service = service
        self.settings = settings or ServerSettings()
        self.app = web.Application()
        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None
        self._start_time: float = time.time()
        self._request_count: int = 0

        self.app.router.add_get("/health", self._handle_health)
        self.app.router.add_post("/run", self._handle_run)
        self.app.router.add_post("/monitors/{id}/check", self._handle_check)
        self.app.router.add_get("/monitors/{id}/stats", self._handle_stats)
        self.app.router.add_post("/test-push", self._handle_test_push)

    async def start(self) -> None:
        """Bind and start serving."""
        self._start_time = time.time()
        self._runner = web.AppRunner(self.app)
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self.settings.host, self.settings.port)
        await self._site.start()
        logger.info(f"✓ TriggerServer listening on {self.settings.host}:{self.settings.port}")

    async def stop(self) -> None:
        """Gracefully shut down the server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
        logger.info("✓ TriggerServer stopped")

    # ------------------------------------------------------------------
    # HELPERS
    # ------------------------------------------------------------------

    def _authorized(self, request: web.Request) -> bool:
        secret = self.settings.cron_secret
        if secret is None or not secret.get_secret_value():
            return True

        expected = f"Bearer {secret.get_secret_value()}"
        provided = request.headers.get("Authorization", "")
        return hmac.compare_digest(provided.encode(), expected.encode())

    @staticmethod
    def _monitor_id(request: web.Request) -> Optional[int]:
        try:
            return int(request.match_info["id"])
        except ValueError:
            return None

    # ------------------------------------------------------------------
    # ROUTE HANDLERS
    # ------------------------------------------------------------------

    async def _handle_health(self, request: web.Request) -> web.Response:
        """GET /health: liveness JSON."""
        self._request_count += 1
        uptime_seconds = int(time.time() - self._start_time)

        health: Dict[str, Any] = {
            "status": "healthy",
            "uptime_seconds": uptime_seconds,
            "uptime_human": TimeHelper.seconds_to_human_readable(uptime_seconds),
            "requests_served": self._request_count,
            "channels": self.service.describe(),
            "timestamp": _timestamp(),
        }
        return web.json_response(health, status=200)

    async def _handle_run(self, request: web.Request) -> web.Response:
        """POST /run: one batch of checks."""
        self._request_count += 1
        if not self._authorized(request):
            return _error(401, "Unauthorized")

        try:
            summary = await self.service.run_batch()
        except Exception as e:
            logger.opt(exception=e).error(f"Monitor batch failed: {e}")
            return _error(500, str(e))

        body = {"message": "Monitor checks completed"}
        body.update(summary.to_dict())
        body["timestamp"] = _timestamp()
        return web.json_response(body, status=200)

    async def _handle_check(self, request: web.Request) -> web.Response:
        """POST /monitors/{id}/check: manual check."""
        self._request_count += 1
        if not self._authorized(request):
            return _error(401, "Unauthorized")

        monitor_id = self._monitor_id(request)
        if monitor_id is None:
            return _error(400, "Invalid monitor id")

        try:
            outcome = await self.service.check_now(monitor_id)
        except DatabaseNotFoundError as e:
            return _error(404, e.message)
        except Exception as e:
            logger.opt(exception=e).error(f"Manual check of monitor {monitor_id} failed: {e}")
            return _error(500, str(e))

        body = {"success": True}
        body.update(outcome.to_dict())
        return web.json_response(body, status=200)

    async def _handle_stats(self, request: web.Request) -> web.Response:
        """GET /monitors/{id}/stats."""
        self._request_count += 1
        monitor_id = self._monitor_id(request)
        if monitor_id is None:
            return _error(400, "Invalid monitor id")

        try:
            stats = await self.service.stats(monitor_id)
        except DatabaseNotFoundError as e:
            return _error(404, e.message)
        except Exception as e:
            logger.opt(exception=e).error(f"Stats for monitor {monitor_id} failed: {e}")
            return _error(500, str(e))

        return web.json_response(stats.to_dict(), status=200)

    async def _handle_test_push(self, request: web.Request) -> web.Response:
        """POST /test-push."""
        self._request_count += 1
        if not self._authorized(request):
            return _error(401, "Unauthorized")

        try:
            report = await self.service.test_push()
        except DatabaseNotFoundError as e:
            return _error(404, e.message)
        except Exception as e:
            logger.opt(exception=e).error(f"Test push failed: {e}")
            return _error(500, str(e))

        body = {"success": True, "message": "Test notification sent"}
        body.update(report.to_dict())
        return web.json_response(body, status=200)
