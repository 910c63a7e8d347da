"""
============================================================================
UPTIME MONITOR - MONITORING PACKAGE
============================================================================
The check engine and its runtime surfaces:
    • EndpointProber     one HTTP GET classified into a CheckResult
    • RetryController    probe with capped exponential backoff
    • ContactResolver    direct + contact-list recipients, deduplicated
    • AlertDispatcher    per-contact e-mail / webhook / voice fan-out
    • CheckOrchestrator  time-budgeted, edge-triggered batch runner
    • Scheduler          in-process periodic trigger

``monitoring.service`` and ``monitoring.server`` are imported directly
by callers; they depend on the database package, which in turn imports
``monitoring.prober``.
============================================================================
"""

from monitoring.prober import CheckResult, EndpointProber, is_success_status
from monitoring.retry import RetryConfig, RetryController, backoff_delay
from monitoring.contacts import ContactResolver, ContactSet, ResolvedContacts
from monitoring.dispatcher import AlertDispatcher, DeliveryOutcome, DispatchReport
from monitoring.engine import BatchSummary, CheckOrchestrator, ManualCheckOutcome, should_alert
from monitoring.stats import MonitorStats, average_response_time, uptime
from monitoring.scheduler import ScheduledJob, Scheduler

__all__ = [
    # Probing
    "CheckResult",
    "EndpointProber",
    "is_success_status",
    "RetryConfig",
    "RetryController",
    "backoff_delay",

    # Alerting
    "ContactResolver",
    "ContactSet",
    "ResolvedContacts",
    "AlertDispatcher",
    "DeliveryOutcome",
    "DispatchReport",

    # Engine
    "BatchSummary",
    "CheckOrchestrator",
    "ManualCheckOutcome",
    "should_alert",

    # Statistics
    "MonitorStats",
    "average_response_time",
    "uptime",

    # Scheduler
    "Scheduler",
    "ScheduledJob",
]
