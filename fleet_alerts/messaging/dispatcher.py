from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from fleet_alerts.core.app_config import EmailConfig
from fleet_alerts.core.errors import DispatchError
from fleet_alerts.messaging.channels import NotificationChannel
from fleet_alerts.messaging.templates import Message, build_document_alert_message
from fleet_alerts.models.alert_log import AlertLevel, AlertStatus
from fleet_alerts.services.alert_log_store import DispatchOutcome
from fleet_alerts.services.documents import (
    RECIPIENT_ROLES,
    SELF_NOTIFYING_KINDS,
    MonitoredSubject,
    Recipient,
    RecipientKind,
)
from fleet_alerts.services.expiry_scanner import ExpiringDocument

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """One initial attempt plus ``max_retries`` retries.

    Linear backoff: wait ``backoff_seconds * attempt`` after each failed attempt.
    """

    max_retries: int = 3
    backoff_seconds: float = 1.0

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_after(self, attempt: int) -> float:
        return self.backoff_seconds * attempt


@dataclass(frozen=True)
class DeliveryResult:
    recipient: str
    delivered: bool
    attempts: int
    error: str | None = None


async def send_with_retry(
    channel: NotificationChannel,
    message: Message,
    policy: RetryPolicy,
    sleep: Sleep = asyncio.sleep,
) -> DeliveryResult:
    attempt = 0
    while True:
        attempt += 1
        try:
            await channel.send(message)
            return DeliveryResult(recipient=message.to, delivered=True, attempts=attempt)
        except DispatchError as exc:
            if not exc.retryable or attempt >= policy.max_attempts:
                logger.warning(
                    "Giving up on %s after %s attempt(s): %s",
                    message.to,
                    attempt,
                    exc,
                )
                return DeliveryResult(recipient=message.to, delivered=False, attempts=attempt, error=str(exc))
            delay = policy.delay_after(attempt)
            logger.info("Send to %s failed (attempt %s), retrying in %.1fs: %s", message.to, attempt, delay, exc)
            await sleep(delay)
        except Exception as exc:
            # Unclassified channel errors are treated as permanent for this recipient.
            logger.exception("Unexpected error sending to %s on attempt %s", message.to, attempt)
            return DeliveryResult(
                recipient=message.to,
                delivered=False,
                attempts=attempt,
                error=f"{type(exc).__name__}: {exc}",
            )


@dataclass(frozen=True)
class RecipientResolution:
    recipients: tuple[Recipient, ...]
    subject_unreachable: bool = False


def resolve_recipients(subject: MonitoredSubject, company_members: Sequence[Recipient]) -> RecipientResolution:
    roles = RECIPIENT_ROLES[subject.kind]
    recipients: list[Recipient] = []
    seen: set[str] = set()

    subject_unreachable = False
    if subject.kind in SELF_NOTIFYING_KINDS:
        email = subject.contact_email
        if email and "@" in email:
            recipients.append(Recipient(kind=RecipientKind.SUBJECT, email=email, name=subject.display_name))
            seen.add(email.lower())
        else:
            subject_unreachable = True

    for member in company_members:
        if member.role not in roles or member.email.lower() in seen:
            continue
        recipients.append(member)
        seen.add(member.email.lower())

    return RecipientResolution(recipients=tuple(recipients), subject_unreachable=subject_unreachable)


class Dispatcher:
    def __init__(
        self,
        channel: NotificationChannel,
        policy: RetryPolicy | None = None,
        email_config: EmailConfig | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.channel = channel
        self.policy = policy or RetryPolicy()
        self.email_config = email_config or EmailConfig()
        self.sleep = sleep

    def build_messages(
        self,
        document: ExpiringDocument,
        level: AlertLevel,
        resolution: RecipientResolution,
    ) -> list[Message]:
        subject = document.subject
        messages = []
        for recipient in resolution.recipients:
            to_subject = recipient.kind == RecipientKind.SUBJECT
            messages.append(
                build_document_alert_message(
                    to=recipient.email,
                    brand_name=self.email_config.brand_name,
                    footer=self.email_config.footer,
                    subject_kind=subject.kind,
                    subject_name=subject.display_name,
                    subject_first_name=subject.first_name,
                    document_label=document.spec.label,
                    level=level,
                    days_remaining=document.days_remaining,
                    expiry_date=document.expiry_date,
                    addressed_to_subject=to_subject,
                    subject_unreachable=resolution.subject_unreachable and not to_subject,
                )
            )
        return messages

    async def dispatch(
        self,
        document: ExpiringDocument,
        level: AlertLevel,
        resolution: RecipientResolution,
    ) -> DispatchOutcome:
        results = [
            await send_with_retry(self.channel, message, self.policy, self.sleep)
            for message in self.build_messages(document, level, resolution)
        ]
        delivered = sum(1 for result in results if result.delivered)
        errors = [f"{result.recipient}: {result.error}" for result in results if not result.delivered]
        return DispatchOutcome(
            status=AlertStatus.SENT if not errors else AlertStatus.FAILED,
            attempts=sum(result.attempts for result in results),
            recipients_total=len(results),
            recipients_delivered=delivered,
            error_message="; ".join(errors) or None,
        )
