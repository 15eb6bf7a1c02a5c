from fleet_alerts.services.alert_log_store import AlertKey, AlertLogStore, DispatchOutcome
from fleet_alerts.services.alert_service import classify, local_today
from fleet_alerts.services.audit_log_service import log_event, read_recent_logs
from fleet_alerts.services.documents import DOCUMENT_CATALOG, DocumentSpec, MonitoredSubject, Recipient, RecipientKind
from fleet_alerts.services.expiry_scanner import ExpiringDocument, MissingDocument, scan_expiries

__all__ = [
    "DOCUMENT_CATALOG",
    "AlertKey",
    "AlertLogStore",
    "DispatchOutcome",
    "DocumentSpec",
    "ExpiringDocument",
    "MissingDocument",
    "MonitoredSubject",
    "Recipient",
    "RecipientKind",
    "classify",
    "local_today",
    "log_event",
    "read_recent_logs",
    "scan_expiries",
]
