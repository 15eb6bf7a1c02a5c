from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from fleet_alerts.models.inspection import PredictiveAlertStatus, UrgencyLevel


class InspectionCreate(BaseModel):
    vehicle_id: int
    score: int | None = Field(default=None, ge=0, le=100)
    tires_condition: str | None = None
    notes: str | None = None
    created_at: datetime | None = None


class InspectionRead(BaseModel):
    id: int
    company_id: int
    vehicle_id: int
    score: int | None = None
    tires_condition: str | None = None
    notes: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PredictiveAlertRead(BaseModel):
    id: int
    company_id: int
    vehicle_id: int
    linked_inspection_id: int | None = None
    calculated_at: datetime
    current_score: int
    previous_score: int
    degradation_speed: float
    days_until_critical: int
    predicted_control_date: date
    urgency_score: float
    urgency_level: UrgencyLevel
    component_concerned: str
    reasoning: str
    status: PredictiveAlertStatus
    resolved_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
