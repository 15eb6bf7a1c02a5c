from datetime import date

import pytest

from fleet_alerts.core.errors import TransientSendError
from fleet_alerts.messaging.dispatcher import Dispatcher, RetryPolicy, resolve_recipients, send_with_retry
from fleet_alerts.messaging.templates import Message, format_duration
from fleet_alerts.models.alert_log import AlertLevel, AlertStatus, DocumentType, SubjectKind
from fleet_alerts.models.company import MemberRole
from fleet_alerts.services.documents import MonitoredSubject, Recipient, RecipientKind, get_document_spec
from fleet_alerts.services.expiry_scanner import ExpiringDocument


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _member(email, role):
    return Recipient(kind=RecipientKind.MEMBER, email=email, name=email.split("@")[0], role=role)


def _driver(email):
    return MonitoredSubject(
        kind=SubjectKind.DRIVER,
        id=7,
        company_id=1,
        display_name="Paul Martin",
        first_name="Paul",
        contact_email=email,
        expiries={DocumentType.LICENSE: date(2026, 4, 1)},
    )


@pytest.mark.anyio
async def test_transient_failure_is_retried_with_linear_backoff(channel):
    channel.transient_failures.add("ops@example.com")
    sleep = SleepRecorder()

    result = await send_with_retry(
        channel,
        Message(to="ops@example.com", subject="s", body="b"),
        RetryPolicy(max_retries=3, backoff_seconds=1.0),
        sleep,
    )

    assert not result.delivered
    assert result.attempts == 4
    assert sleep.delays == [1.0, 2.0, 3.0]
    assert channel.calls == ["ops@example.com"] * 4


@pytest.mark.anyio
async def test_permanent_failure_is_not_retried(channel):
    channel.permanent_failures.add("gone@example.com")
    sleep = SleepRecorder()

    result = await send_with_retry(channel, Message(to="gone@example.com", subject="s", body="b"), RetryPolicy(), sleep)

    assert not result.delivered
    assert result.attempts == 1
    assert sleep.delays == []
    assert "mailbox unavailable" in result.error


@pytest.mark.anyio
async def test_recovers_after_transient_failure():
    class FlakyChannel:
        def __init__(self):
            self.calls = 0

        async def send(self, message):
            self.calls += 1
            if self.calls == 1:
                raise TransientSendError("421 try later")

    flaky = FlakyChannel()
    sleep = SleepRecorder()
    result = await send_with_retry(flaky, Message(to="a@example.com", subject="s", body="b"), RetryPolicy(), sleep)

    assert result.delivered
    assert result.attempts == 2
    assert sleep.delays == [1.0]


def test_driver_alert_goes_to_driver_and_managers_only():
    members = [
        _member("admin@example.com", MemberRole.ADMIN),
        _member("boss@example.com", MemberRole.DIRECTEUR),
        _member("parc@example.com", MemberRole.AGENT_DE_PARC),
        _member("paul@example.com", MemberRole.DIRECTEUR),
    ]

    resolution = resolve_recipients(_driver("paul@example.com"), members)

    assert not resolution.subject_unreachable
    assert [r.email for r in resolution.recipients] == ["paul@example.com", "admin@example.com", "boss@example.com"]
    assert resolution.recipients[0].kind == RecipientKind.SUBJECT


def test_driver_without_email_is_flagged_unreachable():
    resolution = resolve_recipients(_driver(None), [_member("admin@example.com", MemberRole.ADMIN)])

    assert resolution.subject_unreachable
    assert [r.email for r in resolution.recipients] == ["admin@example.com"]


@pytest.mark.anyio
async def test_dispatch_marks_tuple_failed_when_one_recipient_fails(channel):
    channel.transient_failures.add("boss@example.com")
    subject = _driver(None)
    document = ExpiringDocument(
        subject=subject,
        spec=get_document_spec(DocumentType.LICENSE),
        expiry_date=date(2026, 4, 1),
        days_remaining=30,
    )
    resolution = resolve_recipients(
        subject,
        [_member("admin@example.com", MemberRole.ADMIN), _member("boss@example.com", MemberRole.DIRECTEUR)],
    )

    outcome = await Dispatcher(channel, RetryPolicy(), sleep=SleepRecorder()).dispatch(
        document, AlertLevel.URGENT, resolution
    )

    assert outcome.status == AlertStatus.FAILED
    assert outcome.recipients_total == 2
    assert outcome.recipients_delivered == 1
    assert outcome.attempts == 5
    assert "boss@example.com" in outcome.error_message

    message = channel.sent[0]
    assert message.to == "admin@example.com"
    assert "non joignable" in message.subject
    assert "Permis de conduire" in message.body
    assert "01 avril 2026" in message.body


def test_format_duration():
    assert format_duration(2, 4) == "2 jour(s) et 4h"
    assert format_duration(None, 3) == "3h estimee(s)"
    assert format_duration(None, None) == "Non precisee"


@pytest.mark.anyio
async def test_default_policy_retries_three_times(channel):
    channel.transient_failures.add("ops@example.com")
    sleep = SleepRecorder()

    result = await send_with_retry(channel, Message(to="ops@example.com", subject="s", body="b"), RetryPolicy(), sleep)

    assert result.attempts == 4
    assert sleep.delays == [1.0, 2.0, 3.0]


@pytest.mark.anyio
async def test_unexpected_channel_error_fails_only_that_recipient():
    class BuggyChannel:
        async def send(self, message):
            raise RuntimeError("template engine exploded")

    sleep = SleepRecorder()
    result = await send_with_retry(BuggyChannel(), Message(to="a@example.com", subject="s", body="b"), RetryPolicy(), sleep)

    assert not result.delivered
    assert result.attempts == 1
    assert sleep.delays == []
    assert result.error == "RuntimeError: template engine exploded"
