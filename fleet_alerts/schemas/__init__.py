from fleet_alerts.schemas.alert_log import AlertLogRead
from fleet_alerts.schemas.company import (
    CompanyCreate,
    CompanyRead,
    CompanyUpdate,
    MemberCreate,
    MemberRead,
    MemberUpdate,
)
from fleet_alerts.schemas.driver import DriverCreate, DriverRead, DriverUpdate
from fleet_alerts.schemas.inspection import InspectionCreate, InspectionRead, PredictiveAlertRead
from fleet_alerts.schemas.jobs import (
    CleanupSummary,
    DocumentCheckSummary,
    MaintenanceReminderSummary,
    MissingDocumentItem,
    PredictiveRunSummary,
)
from fleet_alerts.schemas.maintenance import MaintenanceCreate, MaintenanceRead, MaintenanceUpdate
from fleet_alerts.schemas.reporting import DashboardSummary
from fleet_alerts.schemas.vehicle import VehicleCreate, VehicleRead, VehicleUpdate

__all__ = [
    "AlertLogRead",
    "CleanupSummary",
    "CompanyCreate",
    "CompanyRead",
    "CompanyUpdate",
    "DashboardSummary",
    "DocumentCheckSummary",
    "DriverCreate",
    "DriverRead",
    "DriverUpdate",
    "InspectionCreate",
    "InspectionRead",
    "MaintenanceCreate",
    "MaintenanceRead",
    "MaintenanceReminderSummary",
    "MaintenanceUpdate",
    "MemberCreate",
    "MemberRead",
    "MemberUpdate",
    "MissingDocumentItem",
    "PredictiveAlertRead",
    "PredictiveRunSummary",
    "VehicleCreate",
    "VehicleRead",
    "VehicleUpdate",
]
