import enum
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Enum, Float, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fleet_alerts.core.clock import utcnow
from fleet_alerts.db.base import Base


class UrgencyLevel(str, enum.Enum):
    SURVEILLANCE = "surveillance"
    CONTROLE_RECOMMANDE = "controle_recommande"
    CONTROLE_URGENT = "controle_urgent"
    INTERVENTION_IMMEDIATE = "intervention_immediate"


class PredictiveAlertStatus(str, enum.Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"


class VehicleInspection(Base):
    __tablename__ = "vehicle_inspections"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id", ondelete="CASCADE"), index=True)
    vehicle_id: Mapped[int] = mapped_column(ForeignKey("vehicles.id", ondelete="CASCADE"), index=True)
    # 0-100, below 70 the vehicle needs an intervention.
    score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # JSON object keyed by wheel position, e.g. {"front_left": {"wear": "OK"}}
    tires_condition: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    vehicle = relationship("Vehicle", back_populates="inspections")


class PredictiveAlert(Base):
    __tablename__ = "predictive_alerts"
    __table_args__ = (
        # At most one active alert per vehicle.
        Index(
            "uq_predictive_alerts_active_vehicle",
            "vehicle_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id", ondelete="CASCADE"), index=True)
    vehicle_id: Mapped[int] = mapped_column(ForeignKey("vehicles.id", ondelete="CASCADE"), index=True)
    linked_inspection_id: Mapped[int | None] = mapped_column(
        ForeignKey("vehicle_inspections.id", ondelete="SET NULL"),
        nullable=True,
    )
    calculated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    current_score: Mapped[int] = mapped_column(Integer, nullable=False)
    previous_score: Mapped[int] = mapped_column(Integer, nullable=False)
    degradation_speed: Mapped[float] = mapped_column(Float, nullable=False)
    days_until_critical: Mapped[int] = mapped_column(Integer, nullable=False)
    predicted_control_date: Mapped[date] = mapped_column(Date, nullable=False)
    urgency_score: Mapped[float] = mapped_column(Float, nullable=False)
    urgency_level: Mapped[UrgencyLevel] = mapped_column(
        Enum(UrgencyLevel, name="urgency_level_enum", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True,
    )
    component_concerned: Mapped[str] = mapped_column(String(64), nullable=False)
    reasoning: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[PredictiveAlertStatus] = mapped_column(
        Enum(PredictiveAlertStatus, name="predictive_alert_status_enum", values_callable=lambda e: [m.value for m in e]),
        default=PredictiveAlertStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
