from __future__ import annotations

from config.constants import AlertChannel
from monitoring.contacts import ResolvedContacts
from monitoring.dispatcher import AlertDispatcher

from tests.conftest import RecordingSender, failed, make_monitor


def _dispatcher(sender: RecordingSender) -> AlertDispatcher:
    return AlertDispatcher(email_sender=sender, webhook_sender=sender, voice_sender=sender)


async def test_one_failing_email_does_not_stop_the_others() -> None:
    sender = RecordingSender(fail_for={"b@x.com"})
    contacts = ResolvedContacts(emails=("a@x.com", "b@x.com", "c@x.com"))

    report = await _dispatcher(sender).dispatch(make_monitor(), contacts, failed())

    assert [call[1] for call in sender.calls] == ["a@x.com", "b@x.com", "c@x.com"]
    assert report.attempted == 3
    assert report.sent == 2
    assert report.failed == 1
    failure = [o for o in report.deliveries if not o.success][0]
    assert failure.recipient == "b@x.com"
    assert "delivery to b@x.com failed" in failure.error


async def test_channels_are_sent_in_order_with_alert_fields() -> None:
    sender = RecordingSender()
    monitor = make_monitor(name="API", url="https://api.example.com")
    contacts = ResolvedContacts(
        emails=("a@x.com",),
        phones=("+15550100001",),
        webhooks=("https://hooks.example.com/1",),
    )

    await _dispatcher(sender).dispatch(monitor, contacts, failed("Connection timed out", None))

    assert sender.calls == [
        ("email", "a@x.com", "API", "https://api.example.com", "Connection timed out"),
        ("webhook", "https://hooks.example.com/1", "API", "https://api.example.com", "Connection timed out"),
        ("voice", "+15550100001", "API", "https://api.example.com"),
    ]


async def test_missing_error_text_uses_unknown_error() -> None:
    sender = RecordingSender()
    result = failed()
    result.error = None

    await _dispatcher(sender).dispatch(make_monitor(), ResolvedContacts(emails=("a@x.com",)), result)

    assert sender.calls[0][4] == "Unknown error"


async def test_unconfigured_channel_is_skipped_and_reported() -> None:
    sender = RecordingSender()
    dispatcher = AlertDispatcher(email_sender=sender)
    contacts = ResolvedContacts(emails=("a@x.com",), phones=("+15550100001",))

    report = await dispatcher.dispatch(make_monitor(), contacts, failed())

    assert report.skipped_channels == [AlertChannel.VOICE]
    assert report.for_channel(AlertChannel.EMAIL)[0].success is True
    assert report.to_dict()["skippedChannels"] == ["voice"]


async def test_empty_contacts_send_nothing() -> None:
    sender = RecordingSender()

    report = await _dispatcher(sender).dispatch(make_monitor(), ResolvedContacts(), failed())

    assert sender.calls == []
    assert report.attempted == 0
