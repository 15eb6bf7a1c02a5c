import enum
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fleet_alerts.core.clock import utcnow
from fleet_alerts.db.base import Base


class VehicleStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    RETIRED = "retired"


class Vehicle(Base):
    __tablename__ = "vehicles"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id", ondelete="CASCADE"), index=True)
    registration_number: Mapped[str] = mapped_column(String(32), unique=True, index=True, nullable=False)
    brand: Mapped[str | None] = mapped_column(String(128), nullable=True)
    model: Mapped[str | None] = mapped_column(String(128), nullable=True)
    status: Mapped[VehicleStatus] = mapped_column(
        Enum(VehicleStatus, name="vehicle_status_enum"),
        default=VehicleStatus.ACTIVE,
        nullable=False,
        index=True,
    )

    technical_control_expiry: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    tachy_control_expiry: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    atp_expiry: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    company = relationship("Company", back_populates="vehicles")
    maintenance_records = relationship(
        "MaintenanceRecord",
        back_populates="vehicle",
        cascade="all, delete-orphan",
    )
    inspections = relationship(
        "VehicleInspection",
        back_populates="vehicle",
        cascade="all, delete-orphan",
    )
    predictive_alerts = relationship("PredictiveAlert", cascade="all, delete-orphan")

    @property
    def label(self) -> str:
        name = " ".join(part for part in (self.brand, self.model) if part)
        return f"{name} - {self.registration_number}" if name else self.registration_number
