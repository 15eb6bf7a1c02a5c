import enum
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fleet_alerts.core.clock import utcnow
from fleet_alerts.db.base import Base


class SubjectKind(str, enum.Enum):
    VEHICLE = "vehicle"
    DRIVER = "driver"


class DocumentType(str, enum.Enum):
    CT = "CT"
    TACHY = "TACHY"
    ATP = "ATP"
    LICENSE = "LICENSE"
    CQC = "CQC"


class AlertLevel(str, enum.Enum):
    REMINDER = "J60"
    URGENT = "J30"
    OVERDUE = "J0"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    # str already defines the rich comparisons, so every one is overridden.
    def __lt__(self, other: object) -> bool:
        if not isinstance(other, AlertLevel):
            return NotImplemented
        return self.severity < other.severity

    def __le__(self, other: object) -> bool:
        if not isinstance(other, AlertLevel):
            return NotImplemented
        return self.severity <= other.severity

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, AlertLevel):
            return NotImplemented
        return self.severity > other.severity

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, AlertLevel):
            return NotImplemented
        return self.severity >= other.severity


_SEVERITY = {AlertLevel.REMINDER: 1, AlertLevel.URGENT: 2, AlertLevel.OVERDUE: 3}


class AlertStatus(str, enum.Enum):
    SENT = "sent"
    FAILED = "failed"


class DocumentAlertLog(Base):
    __tablename__ = "document_alert_logs"
    __table_args__ = (
        UniqueConstraint(
            "subject_kind",
            "subject_id",
            "document_type",
            "alert_level",
            "expiry_date",
            name="uq_document_alert_logs_key",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    subject_kind: Mapped[SubjectKind] = mapped_column(
        Enum(SubjectKind, name="subject_kind_enum"),
        nullable=False,
    )
    # Vehicle or driver id depending on subject_kind, so no foreign key.
    subject_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id", ondelete="CASCADE"), index=True)
    document_type: Mapped[DocumentType] = mapped_column(
        Enum(DocumentType, name="document_type_enum"),
        nullable=False,
        index=True,
    )
    alert_level: Mapped[AlertLevel] = mapped_column(
        Enum(AlertLevel, name="alert_level_enum", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True,
    )
    expiry_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[AlertStatus | None] = mapped_column(
        Enum(AlertStatus, name="alert_status_enum"),
        nullable=True,
        index=True,
    )
    attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    recipients_total: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    recipients_delivered: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
