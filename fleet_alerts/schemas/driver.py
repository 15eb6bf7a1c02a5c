from datetime import date, datetime

from pydantic import BaseModel, ConfigDict

from fleet_alerts.models.driver import DriverStatus


class DriverBase(BaseModel):
    company_id: int
    first_name: str
    last_name: str
    email: str | None = None
    phone: str | None = None
    status: DriverStatus = DriverStatus.ACTIVE
    cqc_expiry_date: date | None = None


class DriverCreate(DriverBase):
    license_expiry: date


class DriverUpdate(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    status: DriverStatus | None = None
    license_expiry: date | None = None
    cqc_expiry_date: date | None = None


class DriverRead(DriverBase):
    id: int
    license_expiry: date | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
