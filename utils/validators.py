"""
============================================================================
UPTIME MONITOR - VALIDATORS UTILITY
============================================================================
Validation for monitor configuration and alert contacts.

Boolean ``is_valid_*`` checks never raise; ``validate_*`` functions
return the cleaned value or raise a ValidationException subclass.
============================================================================
"""

from __future__ import annotations

import re
from typing import Any, Iterable, List, Optional
from urllib.parse import urlparse

import validators as external_validators

from config.constants import Limits
from exceptions.validation import (
    InvalidContactError,
    InvalidIntervalError,
    InvalidTimeoutError,
    InvalidURLError,
    ValidationException,
)
from utils.logger import get_logger


logger = get_logger(__name__)

PHONE_FORMATTING = re.compile(r"[\s\-.()]")
PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{6,14}$")


# ============================================================================
# URL VALIDATORS
# ============================================================================

class URLValidator:
    """
    URL validation for monitor targets and webhook destinations.
    """

    @staticmethod
    def is_valid_url(url: str) -> bool:
        """
        Check if URL is a well-formed http(s) URL.

        Args:
            url: URL to validate

        Returns:
            True if valid, False otherwise
        """
        if not url or len(url) > Limits.MAX_URL_LENGTH:
            return False

        if urlparse(url).scheme.lower() not in Limits.ALLOWED_URL_SCHEMES:
            return False

        # validators returns a falsy ValidationError instead of raising
        return external_validators.url(url, simple_host=True) is True

    @staticmethod
    def validate_url(url: str) -> str:
        """
        Validate and clean a URL.

        Raises:
            InvalidURLError: when the URL is empty, too long, uses a
                scheme other than http/https, or is malformed
        """
        cleaned = (url or "").strip()

        if not cleaned:
            raise InvalidURLError("URL is required", url=url, reason="empty")

        if len(cleaned) > Limits.MAX_URL_LENGTH:
            raise InvalidURLError(
                f"URL exceeds {Limits.MAX_URL_LENGTH} characters",
                url=cleaned,
                reason="too_long",
            )

        scheme = urlparse(cleaned).scheme.lower()
        if scheme not in Limits.ALLOWED_URL_SCHEMES:
            raise InvalidURLError(
                f"Unsupported URL scheme: {scheme or 'none'}",
                url=cleaned,
                reason="scheme",
            )

        if not URLValidator.is_valid_url(cleaned):
            raise InvalidURLError(url=cleaned, reason="malformed")

        return cleaned


# ============================================================================
# MONITOR VALIDATORS
# ============================================================================

class MonitorValidator:
    """
    Bounds checks for monitor configuration fields.
    """

    @staticmethod
    def validate_name(name: str) -> str:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationException("Monitor name is required", field="name")
        if len(cleaned) > Limits.MAX_NAME_LENGTH:
            raise ValidationException(
                f"Monitor name exceeds {Limits.MAX_NAME_LENGTH} characters",
                field="name",
                value=cleaned,
            )
        return cleaned

    @staticmethod
    def validate_interval(interval: Any) -> int:
        """
        Validate a poll interval in seconds.

        Raises:
            InvalidIntervalError: below the minimum or not an integer
        """
        try:
            value = int(interval)
        except (TypeError, ValueError) as e:
            raise InvalidIntervalError(
                "Interval must be an integer number of seconds",
                interval=interval,
                cause=e,
            ) from e

        if value < Limits.MIN_INTERVAL_SECONDS:
            raise InvalidIntervalError(
                f"Interval must be at least {Limits.MIN_INTERVAL_SECONDS} seconds",
                interval=value,
                min_interval=Limits.MIN_INTERVAL_SECONDS,
            )
        return value

    @staticmethod
    def validate_timeout(timeout: Any) -> int:
        """
        Validate a per-attempt probe timeout in seconds.

        Raises:
            InvalidTimeoutError: outside the allowed range or not an integer
        """
        try:
            value = int(timeout)
        except (TypeError, ValueError) as e:
            raise InvalidTimeoutError(
                "Timeout must be an integer number of seconds",
                timeout=timeout,
                cause=e,
            ) from e

        if not Limits.MIN_TIMEOUT_SECONDS <= value <= Limits.MAX_TIMEOUT_SECONDS:
            raise InvalidTimeoutError(
                f"Timeout must be between {Limits.MIN_TIMEOUT_SECONDS} "
                f"and {Limits.MAX_TIMEOUT_SECONDS} seconds",
                timeout=value,
                min_timeout=Limits.MIN_TIMEOUT_SECONDS,
                max_timeout=Limits.MAX_TIMEOUT_SECONDS,
            )
        return value


# ============================================================================
# CONTACT VALIDATORS
# ============================================================================

class ContactValidator:
    """
    Validation for alert destinations (e-mail, phone, webhook).
    """

    @staticmethod
    def is_valid_email(email: str) -> bool:
        return bool(email) and external_validators.email(email.strip()) is True

    @staticmethod
    def is_valid_phone(phone: str) -> bool:
        if not phone:
            return False
        return PHONE_PATTERN.match(PHONE_FORMATTING.sub("", phone)) is not None

    @staticmethod
    def validate_email(email: str) -> str:
        cleaned = (email or "").strip()
        if not ContactValidator.is_valid_email(cleaned):
            raise InvalidContactError("Invalid e-mail address", kind="email", value=email)
        return cleaned

    @staticmethod
    def validate_phone(phone: str) -> str:
        cleaned = (phone or "").strip()
        if not ContactValidator.is_valid_phone(cleaned):
            raise InvalidContactError("Invalid phone number", kind="phone", value=phone)
        return cleaned

    @staticmethod
    def validate_webhook(url: str) -> str:
        try:
            return URLValidator.validate_url(url)
        except InvalidURLError as e:
            raise InvalidContactError(
                "Invalid webhook URL",
                kind="webhook",
                value=url,
                cause=e,
            ) from e

    @classmethod
    def validate_many(
        cls,
        values: Optional[Iterable[str]],
        kind: str,
    ) -> List[str]:
        """
        Validate a list of contacts of one kind.

        Args:
            values: Raw contact values (None is treated as empty)
            kind: "email", "phone" or "webhook"

        Returns:
            Cleaned values in input order
        """
        checks = {
            "email": cls.validate_email,
            "phone": cls.validate_phone,
            "webhook": cls.validate_webhook,
        }
        try:
            check = checks[kind]
        except KeyError:
            raise ValueError(f"Unknown contact kind: {kind}") from None

        cleaned = [check(value) for value in (values or [])]
        if cleaned:
            logger.debug(f"Validated {len(cleaned)} {kind} contact(s)")
        return cleaned
