from datetime import date, datetime

from pydantic import BaseModel, ConfigDict

from fleet_alerts.models.vehicle import VehicleStatus


class VehicleBase(BaseModel):
    company_id: int
    registration_number: str
    brand: str | None = None
    model: str | None = None
    status: VehicleStatus = VehicleStatus.ACTIVE
    technical_control_expiry: date | None = None
    tachy_control_expiry: date | None = None
    atp_expiry: date | None = None


class VehicleCreate(VehicleBase):
    pass


class VehicleUpdate(BaseModel):
    registration_number: str | None = None
    brand: str | None = None
    model: str | None = None
    status: VehicleStatus | None = None
    technical_control_expiry: date | None = None
    tachy_control_expiry: date | None = None
    atp_expiry: date | None = None


class VehicleRead(VehicleBase):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
