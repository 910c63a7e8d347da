"""
Voice-call alerts through the Twilio REST API.
"""

from __future__ import annotations

from typing import Optional
from xml.sax.saxutils import escape

import httpx

from config.settings import TwilioSettings
from exceptions import ConfigurationError, VoiceCallError
from notifications.base import HTTPNotifier
from utils.helpers import StringHelper
from utils.logger import get_logger


logger = get_logger(__name__)


def build_twiml(monitor_name: str, url: str) -> str:
    """TwiML read out to the callee; the message is repeated once."""
    message = escape(f"Alert. Monitor {monitor_name} at {url} is down.")
    return (
        "<Response>"
        f'<Say voice="alice">{message}</Say>'
        '<Pause length="1"/>'
        f'<Say voice="alice">{message}</Say>'
        "</Response>"
    )


class TwilioVoiceSender(HTTPNotifier):
    """Places one outbound call per phone number via ``Calls.json``."""

    def __init__(
        self,
        settings: TwilioSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not settings.configured:
            raise ConfigurationError(
                "Twilio account SID, auth token and caller number are required",
                config_key="TWILIO_ACCOUNT_SID",
            )
        self.settings = settings
        super().__init__(settings.timeout, transport)

    @property
    def calls_url(self) -> str:
        base = self.settings.api_base.rstrip("/")
        return f"{base}/2010-04-01/Accounts/{self.settings.account_sid}/Calls.json"

    async def send_voice_call(self, to: str, monitor_name: str, url: str) -> None:
        """
        Raises:
            VoiceCallError: transport failure or Twilio rejected the call
        """
        form = {
            "To": to,
            "From": self.settings.from_number,
            "Twiml": build_twiml(monitor_name, url),
        }
        auth = (self.settings.account_sid, self.settings.auth_token.get_secret_value())

        try:
            async with self._client(auth=auth) as client:
                response = await client.post(self.calls_url, data=form)
        except httpx.HTTPError as e:
            raise VoiceCallError(
                f"Twilio request failed: {e}",
                recipient=to,
                cause=e,
            ) from e

        if not response.is_success:
            raise VoiceCallError(
                f"Twilio rejected call to {StringHelper.mask(to)}: {self._twilio_error(response)}",
                recipient=to,
                status_code=response.status_code,
            )

        call_sid = self._call_sid(response)
        logger.debug(f"Twilio call queued to {StringHelper.mask(to)} (sid={call_sid})")

    @classmethod
    def _twilio_error(cls, response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return cls.describe_response(response)
        if isinstance(payload, dict) and payload.get("message"):
            return f"{response.status_code} {payload['message']}"
        return cls.describe_response(response)

    @staticmethod
    def _call_sid(response: httpx.Response) -> Optional[str]:
        try:
            payload = response.json()
        except ValueError:
            return None
        return payload.get("sid") if isinstance(payload, dict) else None
