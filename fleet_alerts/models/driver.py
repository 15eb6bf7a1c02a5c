import enum
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fleet_alerts.core.clock import utcnow
from fleet_alerts.db.base import Base


class DriverStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Driver(Base):
    __tablename__ = "drivers"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id", ondelete="CASCADE"), index=True)
    first_name: Mapped[str] = mapped_column(String(128), nullable=False)
    last_name: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    status: Mapped[DriverStatus] = mapped_column(
        Enum(DriverStatus, name="driver_status_enum"),
        default=DriverStatus.ACTIVE,
        nullable=False,
        index=True,
    )

    # Mandatory on the form; the column stays nullable so legacy rows can be reported.
    license_expiry: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    cqc_expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    company = relationship("Company", back_populates="drivers")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
