import smtplib

import pytest

from fleet_alerts.core.errors import PermanentSendError, TransientSendError
from fleet_alerts.messaging.channels import LogChannel, SmtpChannel, build_notification_channel
from fleet_alerts.messaging.templates import Message

MESSAGE = Message(to="ops@example.com", subject="Alerte", body="Corps")


def _channel_raising(monkeypatch, exc: Exception) -> SmtpChannel:
    channel = SmtpChannel(host="smtp.example.com", port=587, from_address="alerts@example.com")

    def _fail(message):
        raise exc

    monkeypatch.setattr(channel, "_send_blocking", _fail)
    return channel


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        (smtplib.SMTPResponseException(451, b"try again later"), TransientSendError),
        (smtplib.SMTPResponseException(550, b"no such user"), PermanentSendError),
        (smtplib.SMTPRecipientsRefused({"ops@example.com": (550, b"refused")}), PermanentSendError),
        (smtplib.SMTPAuthenticationError(535, b"bad credentials"), PermanentSendError),
        (smtplib.SMTPServerDisconnected("gone"), TransientSendError),
        (ConnectionRefusedError("refused"), TransientSendError),
    ],
)
async def test_smtp_errors_map_to_retry_classes(monkeypatch, exc, expected):
    channel = _channel_raising(monkeypatch, exc)

    with pytest.raises(expected):
        await channel.send(MESSAGE)


def test_smtp_message_headers():
    channel = SmtpChannel(host="smtp.example.com", port=587, from_address="alerts@example.com")
    email = channel._build(MESSAGE)

    assert email["From"] == "alerts@example.com"
    assert email["To"] == "ops@example.com"
    assert email["Subject"] == "Alerte"


def test_channel_follows_settings(test_settings):
    assert isinstance(build_notification_channel(test_settings), LogChannel)

    smtp_settings = test_settings.model_copy(update={"notification_channel": "smtp", "smtp_host": "mail.local"})
    channel = build_notification_channel(smtp_settings)
    assert isinstance(channel, SmtpChannel)
    assert channel.host == "mail.local"
