"""
============================================================================
UPTIME MONITOR - COMMAND LINE ENTRY POINT
============================================================================
One-shot commands
-----------------
    run-once          run one batch of checks, print the summary JSON
    check <id>        check one monitor immediately
    stats <id>        print uptime / response-time statistics
    prune             delete check history past the retention window
    test-push         push a test notification to every active device

Long-running modes
------------------
    loop                      in-process scheduler only
    serve [--with-scheduler]  HTTP trigger server (+ scheduler)

Startup Order
-------------
1.  Load settings & configure logging
2.  Connect DatabaseManager (create tables if needed)
3.  Build MonitorService (senders, engine)
4.  Start TriggerServer and/or Scheduler

Shutdown Order (reverse)
------------------------
On Ctrl+C or SIGTERM:
    stop scheduler → stop trigger server → close DB → exit
============================================================================
"""

import argparse
import asyncio
import json
import signal
import sys
from typing import Any, Dict, List, Optional

from config.settings import Settings, get_settings
from monitoring.scheduler import Scheduler, register_monitor_jobs
from monitoring.server import TriggerServer
from monitoring.service import MonitorService
from utils.logger import get_logger, setup_logging


logger = get_logger("Main")


class UptimeMonitorApplication:
    """
    Owns the service and the long-running surfaces, and is the single
    place that knows the startup / shutdown order.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.service = MonitorService(self.settings)
        self.scheduler: Optional[Scheduler] = None
        self.server: Optional[TriggerServer] = None
        self._stop_event = asyncio.Event()

    # ------------------------------------------------------------------
    # BANNER
    # ------------------------------------------------------------------

    def _print_banner(self) -> None:
        channels = ", ".join(
            name for name, enabled in self.service.describe().items() if enabled
        ) or "none"
        banner = f"""
╔══════════════════════════════════════════════════════════════════════════╗
║          🚀  {self.settings.app_name.upper():<30} v{self.settings.app_version:<20}   ║
║                                                                          ║
║   Database : {self.settings.database.type.value:<12} Budget : {self.settings.monitoring.execution_budget:<6.0f}s                        ║
║   Channels : {channels:<58}  ║
╚══════════════════════════════════════════════════════════════════════════╝
"""
        logger.info(banner)

    # ------------------------------------------------------------------
    # LIFECYCLE
    # ------------------------------------------------------------------

    def request_stop(self) -> None:
        logger.info("  ⚡ Signal received, initiating graceful shutdown…")
        self._stop_event.set()

    async def startup(self, with_server: bool, with_scheduler: bool) -> None:
        self._print_banner()
        await self.service.start()

        if with_server:
            self.server = TriggerServer(self.service, self.settings.server)
            await self.server.start()

        if with_scheduler:
            self.scheduler = Scheduler()
            register_monitor_jobs(self.scheduler, self.service, self.settings.monitoring)
            await self.scheduler.start()

        logger.info("  ✓ ALL SYSTEMS OPERATIONAL")

    async def shutdown(self) -> None:
        """
        Graceful shutdown in reverse order. A failure in one step does
        not prevent the others from cleaning up.
        """
        if self.scheduler:
            try:
                await self.scheduler.stop()
            except Exception as e:
                logger.error(f"  ✗ Scheduler stop error: {e}")

        if self.server:
            try:
                await self.server.stop()
            except Exception as e:
                logger.error(f"  ✗ TriggerServer stop error: {e}")

        try:
            await self.service.close()
        except Exception as e:
            logger.error(f"  ✗ Database close error: {e}")

        logger.info("  ✓ SHUTDOWN COMPLETE")

    async def serve_forever(self, with_server: bool, with_scheduler: bool) -> None:
        _install_signal_handlers(asyncio.get_running_loop(), self.request_stop)
        try:
            await self.startup(with_server, with_scheduler)
            await self._stop_event.wait()
        finally:
            await self.shutdown()


# ============================================================================
# SIGNAL HANDLER SETUP
# ============================================================================

def _install_signal_handlers(loop: asyncio.AbstractEventLoop, callback) -> None:
    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, callback)
        except (NotImplementedError, OSError, RuntimeError):
            # unsupported on Windows; KeyboardInterrupt still applies
            pass


# ============================================================================
# ONE-SHOT COMMANDS
# ============================================================================

def _emit(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, default=str))


async def _run_command(args: argparse.Namespace, settings: Settings) -> int:
    service = MonitorService(settings)

    try:
        await service.start()

        if args.command == "run-once":
            summary = await service.run_batch()
            _emit(summary.to_dict())

        elif args.command == "check":
            outcome = await service.check_now(args.monitor_id)
            _emit(outcome.to_dict())

        elif args.command == "stats":
            stats = await service.stats(args.monitor_id)
            _emit(stats.to_dict())

        elif args.command == "prune":
            removed = await service.prune_history()
            _emit({"removed": removed})

        elif args.command == "test-push":
            report = await service.test_push()
            _emit(report.to_dict())

        return 0

    except Exception as e:
        logger.opt(exception=e).error(f"Command '{args.command}' failed: {e}")
        _emit({"success": False, "error": str(e)})
        return 1

    finally:
        await service.close()


# ============================================================================
# ARGUMENT PARSING
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="uptime-monitor",
        description="HTTP uptime monitor: check engine, alerting and trigger surfaces",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("run-once", help="Run one batch of monitor checks")
    commands.add_parser("loop", help="Run batches on an in-process schedule")

    serve = commands.add_parser("serve", help="Start the HTTP trigger server")
    serve.add_argument(
        "--with-scheduler",
        action="store_true",
        help="Also run the in-process scheduler",
    )

    check = commands.add_parser("check", help="Check one monitor now")
    check.add_argument("monitor_id", type=int)

    stats = commands.add_parser("stats", help="Show statistics for one monitor")
    stats.add_argument("monitor_id", type=int)

    commands.add_parser("prune", help="Delete check history past the retention window")
    commands.add_parser("test-push", help="Send a test push notification")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(settings.logging)

    if args.command in ("loop", "serve"):
        app = UptimeMonitorApplication(settings)
        with_server = args.command == "serve"
        with_scheduler = args.command == "loop" or args.with_scheduler
        try:
            asyncio.run(app.serve_forever(with_server, with_scheduler))
        except KeyboardInterrupt:
            logger.info("  Interrupted by user")
        except Exception as e:
            logger.opt(exception=e).critical(f"Fatal error: {e}")
            return 1
        return 0

    return asyncio.run(_run_command(args, settings))


if __name__ == "__main__":
    sys.exit(main())
