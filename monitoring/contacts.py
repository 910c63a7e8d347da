"""
============================================================================
UPTIME MONITOR - CONTACT RESOLVER
============================================================================
Expands a monitor's direct alert contacts and its attached contact
lists into one deduplicated set per channel.
============================================================================
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Tuple

from monitoring.interfaces import ContactListSource, MonitorRecord
from utils.logger import get_logger


logger = get_logger(__name__)

PHONE_FORMATTING = re.compile(r"[\s\-.()]")


# ============================================================================
# NORMALIZATION
# ============================================================================

def normalize_email(value: str) -> str:
    return value.strip().lower()


def normalize_webhook(value: str) -> str:
    return value.strip().lower()


def normalize_phone(value: str) -> str:
    """'+1 (555) 010-9999' and '+15550109999' share a key."""
    return PHONE_FORMATTING.sub("", value.strip()).lower()


# ============================================================================
# CONTACT SET
# ============================================================================

class ContactSet:
    """
    Set of contact values keyed by a normalized form.

    The first spelling seen for a key is the one kept and delivered to.
    Iteration follows insertion order.
    """

    def __init__(self, normalizer: Callable[[str], str], values: Iterable[str] = ()):
        self._normalizer = normalizer
        self._items: Dict[str, str] = {}
        self.update(values)

    def add(self, value: Any) -> bool:
        """Add one value; returns False for blanks and duplicates."""
        if not isinstance(value, str) or not value.strip():
            return False

        key = self._normalizer(value)
        if key in self._items:
            return False

        self._items[key] = value.strip()
        return True

    def update(self, values: Iterable[str] | None) -> None:
        for value in values or ():
            self.add(value)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def as_tuple(self) -> Tuple[str, ...]:
        return tuple(self._items.values())


@dataclass(frozen=True)
class ResolvedContacts:
    """Deduplicated alert destinations for one monitor."""

    emails: Tuple[str, ...] = ()
    phones: Tuple[str, ...] = ()
    webhooks: Tuple[str, ...] = ()

    @property
    def total(self) -> int:
        return len(self.emails) + len(self.phones) + len(self.webhooks)

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "emails": list(self.emails),
            "phones": list(self.phones),
            "webhooks": list(self.webhooks),
        }


# ============================================================================
# CONTACT RESOLVER
# ============================================================================

class ContactResolver:
    """
    Merges direct monitor alerts with referenced contact lists.

    A failed list lookup is logged and the resolver falls back to the
    direct alerts alone.
    """

    def __init__(self, contact_lists: ContactListSource):
        self.contact_lists = contact_lists

    async def resolve(self, monitor: MonitorRecord) -> ResolvedContacts:
        emails = ContactSet(normalize_email, monitor.alert_emails or ())
        phones = ContactSet(normalize_phone, monitor.alert_phones or ())
        webhooks = ContactSet(normalize_webhook, monitor.alert_webhooks or ())

        list_ids = list(monitor.contact_list_ids or ())
        if list_ids:
            try:
                bundles = await self.contact_lists.lookup_lists(list_ids)
            except Exception as e:
                logger.opt(exception=e).error(
                    f"Contact list lookup failed for monitor {monitor.id}; "
                    f"using direct alerts only"
                )
                bundles = []

            for bundle in bundles:
                emails.update(bundle.emails)
                phones.update(bundle.phones)
                webhooks.update(bundle.webhooks)

        resolved = ResolvedContacts(
            emails=emails.as_tuple(),
            phones=phones.as_tuple(),
            webhooks=webhooks.as_tuple(),
        )
        logger.debug(
            f"Resolved contacts for monitor {monitor.id}: "
            f"{len(resolved.emails)} email(s), {len(resolved.phones)} phone(s), "
            f"{len(resolved.webhooks)} webhook(s)"
        )
        return resolved
