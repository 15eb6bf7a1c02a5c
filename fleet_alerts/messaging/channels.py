from __future__ import annotations

import asyncio
import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Protocol

from fleet_alerts.core.config import Settings
from fleet_alerts.core.errors import PermanentSendError, TransientSendError
from fleet_alerts.messaging.templates import Message

logger = logging.getLogger(__name__)


class NotificationChannel(Protocol):
    async def send(self, message: Message) -> None:
        """Deliver ``message`` or raise TransientSendError / PermanentSendError."""


class LogChannel:
    """Writes messages to the application log instead of sending them."""

    def __init__(self) -> None:
        self.sent: list[Message] = []

    async def send(self, message: Message) -> None:
        logger.info("Notification to %s: %s", message.to, message.subject)
        self.sent.append(message)


class SmtpChannel:
    """Send plain-text email over SMTP.

    smtplib is blocking, so each send runs in a worker thread.
    """

    def __init__(
        self,
        host: str,
        port: int,
        from_address: str,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 30.0,
    ) -> None:
        self.host = host
        self.port = port
        self.from_address = from_address
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpChannel":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            from_address=settings.email_from,
            username=settings.smtp_username,
            password=settings.smtp_password.get_secret_value() if settings.smtp_password else None,
            use_tls=settings.smtp_use_tls,
            timeout=settings.smtp_timeout_seconds,
        )

    def _build(self, message: Message) -> EmailMessage:
        email = EmailMessage()
        email["Subject"] = message.subject
        email["From"] = self.from_address
        email["To"] = message.to
        email.set_content(message.body)
        return email

    def _send_blocking(self, message: Message) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls(context=ssl.create_default_context())
            if self.username and self.password:
                server.login(self.username, self.password)
            server.send_message(self._build(message))

    async def send(self, message: Message) -> None:
        try:
            await asyncio.to_thread(self._send_blocking, message)
        except smtplib.SMTPRecipientsRefused as exc:
            raise PermanentSendError(f"recipient refused: {message.to}") from exc
        except smtplib.SMTPAuthenticationError as exc:
            raise PermanentSendError(f"SMTP authentication failed: {exc.smtp_code}") from exc
        except smtplib.SMTPResponseException as exc:
            # 4xx replies are temporary by definition, 5xx are not.
            if 400 <= exc.smtp_code < 500:
                raise TransientSendError(f"SMTP {exc.smtp_code}: {exc.smtp_error!r}") from exc
            raise PermanentSendError(f"SMTP {exc.smtp_code}: {exc.smtp_error!r}") from exc
        except (smtplib.SMTPException, OSError) as exc:
            raise TransientSendError(f"SMTP delivery failed: {exc}") from exc


def build_notification_channel(settings: Settings) -> NotificationChannel:
    if settings.notification_channel == "smtp":
        return SmtpChannel.from_settings(settings)
    return LogChannel()
