from datetime import date, datetime, time

from pydantic import BaseModel, ConfigDict

from fleet_alerts.models.maintenance import MaintenanceStatus


class MaintenanceBase(BaseModel):
    vehicle_id: int
    description: str | None = None
    status: MaintenanceStatus = MaintenanceStatus.DEMANDE
    rdv_date: date | None = None
    rdv_time: time | None = None
    garage_name: str | None = None
    garage_address: str | None = None
    estimated_days: int | None = None
    estimated_hours: int | None = None


class MaintenanceCreate(MaintenanceBase):
    pass


class MaintenanceUpdate(BaseModel):
    description: str | None = None
    status: MaintenanceStatus | None = None
    rdv_date: date | None = None
    rdv_time: time | None = None
    garage_name: str | None = None
    garage_address: str | None = None
    estimated_days: int | None = None
    estimated_hours: int | None = None


class MaintenanceRead(MaintenanceBase):
    id: int
    company_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
