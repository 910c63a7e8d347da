from __future__ import annotations

from exceptions import (
    ConfigurationError,
    DatabaseConnectionError,
    DatabaseNotFoundError,
    DatabaseQueryError,
    UptimeMonitorException,
    WebhookDeliveryError,
)


def test_message_is_prefixed_with_error_code() -> None:
    error = DatabaseNotFoundError("Monitor 7 not found", entity_type="Monitor", entity_id=7)

    assert str(error) == "[2003] Monitor 7 not found"
    assert error.message == "Monitor 7 not found"
    assert error.details == {"entity_type": "Monitor", "entity_id": "7"}


def test_connection_error_keeps_only_known_location_fields() -> None:
    cause = OSError("refused")
    error = DatabaseConnectionError(host="db.internal", database="uptime", cause=cause)

    assert error.details == {"host": "db.internal", "database": "uptime"}
    assert error.cause is cause
    assert error.error_code == 2001


def test_families_share_the_root_class() -> None:
    errors = [
        ConfigurationError("missing credentials", config_key="TWILIO_ACCOUNT_SID"),
        DatabaseQueryError(),
        WebhookDeliveryError("HTTP 500", recipient="https://hooks.example.com", status_code=500),
    ]

    assert all(isinstance(error, UptimeMonitorException) for error in errors)
    assert errors[0].details["config_key"] == "TWILIO_ACCOUNT_SID"
    assert errors[2].details == {
        "channel": "webhook",
        "recipient": "https://hooks.example.com",
        "status_code": 500,
    }
