import enum
from datetime import date, datetime, time

from sqlalchemy import Date, DateTime, Enum, ForeignKey, Integer, String, Text, Time, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fleet_alerts.core.clock import utcnow
from fleet_alerts.db.base import Base
from fleet_alerts.models.company import MemberRole

REMINDER_TYPE_DAY_BEFORE = "J-1"


class MaintenanceStatus(str, enum.Enum):
    DEMANDE = "DEMANDE"
    VALIDEE_DIRECTEUR = "VALIDEE_DIRECTEUR"
    RDV_PRIS = "RDV_PRIS"
    EN_COURS = "EN_COURS"
    TERMINEE = "TERMINEE"
    REFUSEE = "REFUSEE"


class ReminderStatus(str, enum.Enum):
    SENT = "sent"
    FAILED = "failed"


class MaintenanceRecord(Base):
    __tablename__ = "maintenance_records"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id", ondelete="CASCADE"), index=True)
    vehicle_id: Mapped[int] = mapped_column(ForeignKey("vehicles.id", ondelete="CASCADE"), index=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    status: Mapped[MaintenanceStatus] = mapped_column(
        Enum(MaintenanceStatus, name="maintenance_status_enum"),
        default=MaintenanceStatus.DEMANDE,
        nullable=False,
        index=True,
    )
    rdv_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    rdv_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    garage_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    garage_address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    estimated_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    estimated_hours: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    vehicle = relationship("Vehicle", back_populates="maintenance_records")


class MaintenanceReminderLog(Base):
    __tablename__ = "maintenance_reminders"
    __table_args__ = (
        UniqueConstraint(
            "maintenance_record_id",
            "recipient_email",
            "reminder_type",
            name="uq_maintenance_reminders_key",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    maintenance_record_id: Mapped[int] = mapped_column(
        ForeignKey("maintenance_records.id", ondelete="CASCADE"),
        index=True,
    )
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id", ondelete="CASCADE"), index=True)
    recipient_email: Mapped[str] = mapped_column(String(255), nullable=False)
    recipient_role: Mapped[MemberRole] = mapped_column(
        Enum(MemberRole, name="reminder_role_enum"),
        nullable=False,
    )
    reminder_type: Mapped[str] = mapped_column(String(16), default=REMINDER_TYPE_DAY_BEFORE, nullable=False)
    status: Mapped[ReminderStatus] = mapped_column(
        Enum(ReminderStatus, name="reminder_status_enum"),
        nullable=False,
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
