from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_alerts.core.clock import utcnow
from fleet_alerts.models.alert_log import AlertLevel, AlertStatus, DocumentAlertLog, DocumentType, SubjectKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AlertKey:
    subject_kind: SubjectKind
    subject_id: int
    document_type: DocumentType
    alert_level: AlertLevel
    expiry_date: date


@dataclass(frozen=True)
class DispatchOutcome:
    status: AlertStatus
    attempts: int
    recipients_total: int
    recipients_delivered: int
    error_message: str | None = None


class AlertLogStore:
    """Deduplication gate over ``document_alert_logs``.

    The unique constraint on the table is what guarantees at most one alert per
    key across overlapping runs; ``has_been_sent`` only avoids provoking it in
    the steady state.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def has_been_sent(self, key: AlertKey) -> bool:
        existing = await self.session.scalar(
            select(DocumentAlertLog.id).where(
                and_(
                    DocumentAlertLog.subject_kind == key.subject_kind,
                    DocumentAlertLog.subject_id == key.subject_id,
                    DocumentAlertLog.document_type == key.document_type,
                    DocumentAlertLog.alert_level == key.alert_level,
                    DocumentAlertLog.expiry_date == key.expiry_date,
                )
            )
        )
        return existing is not None

    async def claim(self, key: AlertKey, company_id: int) -> DocumentAlertLog | None:
        """Insert the log entry for ``key``; None if another entry already holds it.

        The entry stays uncommitted until ``complete`` or ``release``.
        """
        entry = DocumentAlertLog(
            subject_kind=key.subject_kind,
            subject_id=key.subject_id,
            company_id=company_id,
            document_type=key.document_type,
            alert_level=key.alert_level,
            expiry_date=key.expiry_date,
        )
        self.session.add(entry)
        try:
            await self.session.flush()
        except IntegrityError:
            await self.session.rollback()
            logger.info("Alert already claimed: %s", key)
            return None
        return entry

    async def complete(self, entry: DocumentAlertLog, outcome: DispatchOutcome) -> None:
        entry.status = outcome.status
        entry.attempts = outcome.attempts
        entry.recipients_total = outcome.recipients_total
        entry.recipients_delivered = outcome.recipients_delivered
        entry.error_message = outcome.error_message
        entry.completed_at = utcnow()
        await self.session.commit()

    async def release(self) -> None:
        await self.session.rollback()
