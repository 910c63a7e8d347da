"""
Shared plumbing for the HTTP-based notification senders.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from config.constants import Defaults
from utils.helpers import StringHelper


class HTTPNotifier:
    """
    Base class for senders that deliver over HTTP.

    A fresh client is opened per delivery. Tests inject an
    ``httpx.MockTransport`` through ``transport``.
    """

    def __init__(
        self,
        timeout: float,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self._transport = transport

    def _client(self, **kwargs: Any) -> httpx.AsyncClient:
        headers: Dict[str, str] = {"User-Agent": Defaults.USER_AGENT}
        headers.update(kwargs.pop("headers", {}))
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            transport=self._transport,
            headers=headers,
            **kwargs,
        )

    @staticmethod
    def describe_response(response: httpx.Response) -> str:
        """'<code> <reason>: <body excerpt>' for error messages."""
        body = StringHelper.truncate(response.text.strip(), 300) if response.content else ""
        summary = f"{response.status_code} {response.reason_phrase}".rstrip()
        return f"{summary}: {body}" if body else summary
