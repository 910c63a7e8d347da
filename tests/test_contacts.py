from __future__ import annotations

from monitoring.contacts import ContactResolver, ContactSet, normalize_email, normalize_phone

from tests.conftest import FakeContactList, FakeContactLists, make_monitor


def test_contact_set_dedups_case_insensitively_and_keeps_first_spelling() -> None:
    emails = ContactSet(normalize_email, ["Ops@Example.com", "ops@example.com", " ", None, "dev@example.com"])

    assert list(emails) == ["Ops@Example.com", "dev@example.com"]
    assert emails.add("OPS@example.COM") is False


def test_phone_formatting_shares_a_key() -> None:
    phones = ContactSet(normalize_phone, ["+1 (555) 010-9999", "+15550109999"])

    assert len(phones) == 1


async def test_direct_and_list_contacts_are_merged_without_duplicates() -> None:
    lists = FakeContactLists({7: FakeContactList(emails=["a@x.com", "b@x.com"])})
    monitor = make_monitor(alert_emails=["a@x.com"], contact_list_ids=[7])

    resolved = await ContactResolver(lists).resolve(monitor)

    assert set(resolved.emails) == {"a@x.com", "b@x.com"}
    assert len(resolved.emails) == 2


async def test_all_channels_are_merged() -> None:
    lists = FakeContactLists({
        1: FakeContactList(phones=["+15550100001"], webhooks=["https://hooks.example.com/a"]),
        2: FakeContactList(emails=["team@x.com"], webhooks=["https://HOOKS.example.com/a"]),
    })
    monitor = make_monitor(
        alert_emails=["lead@x.com"],
        alert_phones=["+1 555 010 0001"],
        contact_list_ids=[1, 2],
    )

    resolved = await ContactResolver(lists).resolve(monitor)

    assert resolved.emails == ("lead@x.com", "team@x.com")
    assert resolved.phones == ("+1 555 010 0001",)
    assert resolved.webhooks == ("https://hooks.example.com/a",)
    assert resolved.total == 4


async def test_missing_lists_are_ignored() -> None:
    lists = FakeContactLists({1: FakeContactList(emails=["b@x.com"])})
    monitor = make_monitor(alert_emails=["a@x.com"], contact_list_ids=[1, 99])

    resolved = await ContactResolver(lists).resolve(monitor)

    assert resolved.emails == ("a@x.com", "b@x.com")


async def test_no_list_ids_skips_lookup() -> None:
    lists = FakeContactLists()

    resolved = await ContactResolver(lists).resolve(make_monitor(alert_emails=["a@x.com"]))

    assert lists.lookups == []
    assert resolved.emails == ("a@x.com",)


async def test_lookup_failure_falls_back_to_direct_alerts() -> None:
    lists = FakeContactLists(error=RuntimeError("store down"))
    monitor = make_monitor(alert_emails=["a@x.com"], alert_phones=["+15550100001"], contact_list_ids=[1])

    resolved = await ContactResolver(lists).resolve(monitor)

    assert resolved.emails == ("a@x.com",)
    assert resolved.phones == ("+15550100001",)


async def test_no_contacts_resolves_empty() -> None:
    resolved = await ContactResolver(FakeContactLists()).resolve(make_monitor())

    assert resolved.is_empty
    assert resolved.to_dict() == {"emails": [], "phones": [], "webhooks": []}
