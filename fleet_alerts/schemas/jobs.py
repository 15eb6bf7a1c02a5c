from datetime import date, datetime

from pydantic import BaseModel, Field

from fleet_alerts.core.clock import utcnow
from fleet_alerts.models.alert_log import DocumentType, SubjectKind


class MissingDocumentItem(BaseModel):
    subject_kind: SubjectKind
    subject_id: int
    company_id: int
    subject_name: str
    document_type: DocumentType


class DocumentCheckSummary(BaseModel):
    success: bool = True
    timestamp: datetime = Field(default_factory=utcnow)
    reference_date: date | None = None
    subjects_scanned: int = 0
    documents_checked: int = 0
    skipped_no_threshold: int = 0
    skipped_already_sent: int = 0
    skipped_no_recipients: int = 0
    subjects_unreachable: int = 0
    missing_required: int = 0
    alerts_sent: int = 0
    alerts_failed: int = 0
    missing_documents: list[MissingDocumentItem] = Field(default_factory=list)


class MaintenanceReminderSummary(BaseModel):
    success: bool = True
    timestamp: datetime = Field(default_factory=utcnow)
    date_scanned: date | None = None
    records_scanned: int = 0
    emails_sent: int = 0
    skipped_already_sent: int = 0
    skipped_no_recipients: int = 0
    skipped_inactive_vehicle: int = 0
    errors: int = 0


class PredictiveRunSummary(BaseModel):
    success: bool = True
    timestamp: datetime = Field(default_factory=utcnow)
    vehicles_scanned: int = 0
    alerts_created: int = 0
    skipped_active_alert: int = 0
    skipped_insufficient_history: int = 0
    skipped_stable: int = 0
    errors: int = 0


class CleanupSummary(BaseModel):
    success: bool = True
    timestamp: datetime = Field(default_factory=utcnow)
    cutoff: datetime | None = None
    document_alert_logs_deleted: int = 0
    maintenance_reminder_logs_deleted: int = 0
    predictive_alerts_deleted: int = 0
    errors: list[str] = Field(default_factory=list)
