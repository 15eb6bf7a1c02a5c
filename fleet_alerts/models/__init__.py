from fleet_alerts.models.alert_log import AlertLevel, AlertStatus, DocumentAlertLog, DocumentType, SubjectKind
from fleet_alerts.models.company import Company, Member, MemberRole
from fleet_alerts.models.driver import Driver, DriverStatus
from fleet_alerts.models.inspection import PredictiveAlert, PredictiveAlertStatus, UrgencyLevel, VehicleInspection
from fleet_alerts.models.maintenance import (
    MaintenanceRecord,
    MaintenanceReminderLog,
    MaintenanceStatus,
    ReminderStatus,
)
from fleet_alerts.models.vehicle import Vehicle, VehicleStatus

__all__ = [
    "AlertLevel",
    "AlertStatus",
    "Company",
    "DocumentAlertLog",
    "DocumentType",
    "Driver",
    "DriverStatus",
    "MaintenanceRecord",
    "MaintenanceReminderLog",
    "MaintenanceStatus",
    "Member",
    "MemberRole",
    "PredictiveAlert",
    "PredictiveAlertStatus",
    "ReminderStatus",
    "SubjectKind",
    "UrgencyLevel",
    "Vehicle",
    "VehicleInspection",
    "VehicleStatus",
]
