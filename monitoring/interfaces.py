"""
Boundary contracts consumed by the check engine.

Storage and notification collaborators are injected at construction
time; anything with matching coroutine methods satisfies them.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol, Sequence

from config.constants import MonitorStatus

if TYPE_CHECKING:
    from monitoring.prober import CheckResult


class MonitorRecord(Protocol):
    """Fields of a monitor the engine reads."""

    id: Any
    name: str
    url: str
    interval: int
    timeout: int
    status: MonitorStatus
    last_check: Optional[datetime]
    alert_emails: Optional[List[str]]
    alert_phones: Optional[List[str]]
    alert_webhooks: Optional[List[str]]
    contact_list_ids: Optional[List[Any]]


class ContactBundle(Protocol):
    emails: Optional[List[str]]
    phones: Optional[List[str]]
    webhooks: Optional[List[str]]


# ============================================================================
# STORAGE
# ============================================================================

class MonitorSource(Protocol):
    async def list_pollable(self) -> Sequence[MonitorRecord]: ...

    async def update_status(
        self,
        monitor_id: Any,
        status: MonitorStatus,
        last_check: datetime,
    ) -> None: ...


class CheckSink(Protocol):
    async def record_check(self, monitor_id: Any, result: "CheckResult") -> Any: ...


class ContactListSource(Protocol):
    async def lookup_lists(self, ids: Sequence[Any]) -> Sequence[ContactBundle]: ...


# ============================================================================
# PROBING
# ============================================================================

class Prober(Protocol):
    async def probe(self, url: str, timeout: float) -> "CheckResult": ...


# ============================================================================
# NOTIFICATION SENDERS
# ============================================================================

class EmailSender(Protocol):
    async def send_email(
        self,
        to: str,
        monitor_name: str,
        url: str,
        error_message: str,
    ) -> None: ...


class WebhookSender(Protocol):
    async def send_webhook(
        self,
        url: str,
        monitor_name: str,
        monitor_url: str,
        error_message: str,
    ) -> None: ...


class VoiceCallSender(Protocol):
    async def send_voice_call(self, to: str, monitor_name: str, url: str) -> None: ...


class PushSender(Protocol):
    async def send_push(
        self,
        tokens: Sequence[str],
        title: str,
        body: str,
        data: Optional[Dict[str, str]] = None,
    ) -> Any: ...
