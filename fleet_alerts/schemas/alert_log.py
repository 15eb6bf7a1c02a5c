from datetime import date, datetime

from pydantic import BaseModel, ConfigDict

from fleet_alerts.models.alert_log import AlertLevel, AlertStatus, DocumentType, SubjectKind


class AlertLogRead(BaseModel):
    id: int
    subject_kind: SubjectKind
    subject_id: int
    company_id: int
    document_type: DocumentType
    alert_level: AlertLevel
    expiry_date: date
    status: AlertStatus | None = None
    attempts: int
    recipients_total: int
    recipients_delivered: int
    error_message: str | None = None
    created_at: datetime
    completed_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
