from datetime import timedelta

from fastapi import APIRouter, Depends
from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_alerts.api.deps import get_db_session, get_settings
from fleet_alerts.core.config import Settings
from fleet_alerts.models.alert_log import AlertStatus, DocumentAlertLog, SubjectKind
from fleet_alerts.models.driver import Driver, DriverStatus
from fleet_alerts.models.inspection import PredictiveAlert, PredictiveAlertStatus
from fleet_alerts.models.vehicle import Vehicle, VehicleStatus
from fleet_alerts.schemas.reporting import DashboardSummary
from fleet_alerts.services.alert_service import local_today
from fleet_alerts.services.documents import DOCUMENT_CATALOG

router = APIRouter(prefix="/reporting", tags=["reporting"])


ACTIVE_SUBJECTS = {
    SubjectKind.VEHICLE: (Vehicle, Vehicle.status == VehicleStatus.ACTIVE),
    SubjectKind.DRIVER: (Driver, Driver.status == DriverStatus.ACTIVE),
}


async def _count_documents(session: AsyncSession, condition_for) -> int:
    """Count non-null expiry dates across every monitored document column."""
    total = 0
    for spec in DOCUMENT_CATALOG:
        model, active = ACTIVE_SUBJECTS[spec.subject_kind]
        column = getattr(model, spec.field)
        count = await session.scalar(
            select(func.count()).select_from(model).where(active, column.is_not(None), condition_for(column))
        )
        total += count or 0
    return total


@router.get("/dashboard", response_model=DashboardSummary)
async def get_dashboard_summary(
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> DashboardSummary:
    today = local_today(settings.reference_timezone)

    due_30 = await _count_documents(
        session, lambda column: and_(column > today, column <= today + timedelta(days=30))
    )
    due_60 = await _count_documents(
        session, lambda column: and_(column > today, column <= today + timedelta(days=60))
    )
    overdue = await _count_documents(session, lambda column: column <= today)

    missing_license = await session.scalar(
        select(func.count()).select_from(Driver).where(
            Driver.status == DriverStatus.ACTIVE,
            Driver.license_expiry.is_(None),
        )
    )
    alerts_total = await session.scalar(select(func.count()).select_from(DocumentAlertLog))
    alerts_failed = await session.scalar(
        select(func.count()).select_from(DocumentAlertLog).where(
            DocumentAlertLog.status == AlertStatus.FAILED
        )
    )
    predictive_active =await session.scalar(
        select(func.count()).select_from(PredictiveAlert).where(
            PredictiveAlert.status == PredictiveAlertStatus.ACTIVE
        )
    )

    return DashboardSummary(
        documents_due_in_30_days=due_30,
        documents_due_in_60_days=due_60,
        documents_overdue=overdue,
        drivers_missing_license=missing_license or 0,
        alerts_total=alerts_total or 0,
        alerts_failed=alerts_failed or 0,
        predictive_alerts_active=predictive_active or 0,
    )
