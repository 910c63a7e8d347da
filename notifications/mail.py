"""
Email Service

Sends monitor-down alerts over SMTP. smtplib is blocking, so each
delivery runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Callable, Optional

from config.settings import EmailSettings
from exceptions import EmailDeliveryError
from utils.helpers import StringHelper, TimeHelper
from utils.logger import get_logger


logger = get_logger(__name__)


def build_alert_message(
    sender: str,
    to: str,
    monitor_name: str,
    url: str,
    error_message: str,
) -> MIMEMultipart:
    """
    Build the multipart (plain + HTML) down-alert message.

    Args:
        sender: From address
        to: Recipient email address
        monitor_name: Display name of the monitor
        url: Monitored URL
        error_message: Failure description from the last check
    """
    detected_at = TimeHelper.utc_now().strftime("%Y-%m-%d %H:%M:%S")

    body = f"""Monitor Alert

{monitor_name} is not responding.

URL: {url}
Error: {error_message}
Detected at: {detected_at} UTC

---
This is an automated notification from Uptime Monitor.
"""

    name = StringHelper.escape_html(monitor_name)
    href = StringHelper.escape_html(url)
    error = StringHelper.escape_html(error_message)
    html = f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
      <h2 style="color: #ef4444;">Monitor Alert</h2>
      <p><strong>{name}</strong> is not responding.</p>
      <div style="background: #fef2f2; padding: 16px; border-radius: 8px; margin: 20px 0;">
        <p><strong>URL:</strong> <a href="{href}">{href}</a></p>
        <p><strong>Error:</strong> {error}</p>
        <p><strong>Detected at:</strong> {detected_at} UTC</p>
      </div>
      <hr style="border: 1px solid #e5e7eb; margin: 20px 0;" />
      <p style="color: #9ca3af; font-size: 12px;">
        Uptime Monitor - Keep your services running
      </p>
    </div>
    """

    message = MIMEMultipart("alternative")
    message["From"] = sender
    message["To"] = to
    message["Subject"] = f"[DOWN] {monitor_name} is not responding"

    message.attach(MIMEText(body, "plain"))
    message.attach(MIMEText(html, "html"))
    return message


class SMTPEmailSender:
    """
    SMTP email sender.

    Port 465 uses implicit TLS; any other port upgrades with STARTTLS
    when ``use_tls`` is set.
    """

    def __init__(
        self,
        settings: EmailSettings,
        smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP,
        smtp_ssl_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP_SSL,
    ):
        self.settings = settings
        self._smtp_factory = smtp_factory
        self._smtp_ssl_factory = smtp_ssl_factory

    async def send_email(
        self,
        to: str,
        monitor_name: str,
        url: str,
        error_message: str,
    ) -> None:
        """
        Send one down-alert email.

        Raises:
            EmailDeliveryError: if the SMTP exchange fails
        """
        message = build_alert_message(
            self.settings.from_address, to, monitor_name, url, error_message
        )
        await asyncio.to_thread(self._deliver, message, to)
        logger.debug(f"Email notification sent to {to} for {monitor_name}")

    def _deliver(self, message: MIMEMultipart, to: str) -> None:
        settings = self.settings
        password: Optional[str] = settings.password.get_secret_value() or None

        try:
            if settings.port == 465:
                server = self._smtp_ssl_factory(settings.host, settings.port, timeout=settings.timeout)
            else:
                server = self._smtp_factory(settings.host, settings.port, timeout=settings.timeout)

            with server:
                if settings.port != 465 and settings.use_tls:
                    server.starttls()
                if settings.user and password:
                    server.login(settings.user, password)
                server.send_message(message)

        except smtplib.SMTPException as e:
            raise EmailDeliveryError(
                f"SMTP error sending email to {to}: {e}",
                recipient=to,
                cause=e,
            ) from e
        except OSError as e:
            raise EmailDeliveryError(
                f"Could not reach SMTP server {settings.host}:{settings.port}: {e}",
                recipient=to,
                cause=e,
            ) from e
