from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_alerts.api.deps import get_db_session
from fleet_alerts.core.clock import utcnow
from fleet_alerts.models.inspection import PredictiveAlert, PredictiveAlertStatus, UrgencyLevel, VehicleInspection
from fleet_alerts.models.vehicle import Vehicle
from fleet_alerts.schemas.inspection import InspectionCreate, InspectionRead, PredictiveAlertRead
from fleet_alerts.services.audit_log_service import log_event

router = APIRouter(tags=["inspections"])


@router.post("/inspections", response_model=InspectionRead, status_code=status.HTTP_201_CREATED)
async def create_inspection(
    payload: InspectionCreate,
    session: AsyncSession = Depends(get_db_session),
) -> VehicleInspection:
    vehicle = await session.get(Vehicle, payload.vehicle_id)
    if vehicle is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vehicle not found")

    values = payload.model_dump(exclude_none=True)
    inspection = VehicleInspection(company_id=vehicle.company_id, **values)
    session.add(inspection)
    await session.commit()
    await session.refresh(inspection)
    log_event("create_inspection", f"inspection_id={inspection.id}, vehicle_id={inspection.vehicle_id}")
    return inspection


@router.get("/inspections", response_model=list[InspectionRead])
async def list_inspections(
    vehicle_id: int | None = Query(default=None),
    company_id: int | None = Query(default=None),
    session: AsyncSession = Depends(get_db_session),
) -> list[VehicleInspection]:
    query = select(VehicleInspection)
    if vehicle_id is not None:
        query = query.where(VehicleInspection.vehicle_id == vehicle_id)
    if company_id is not None:
        query = query.where(VehicleInspection.company_id == company_id)

    result = await session.scalars(query.order_by(VehicleInspection.created_at.desc(), VehicleInspection.id.desc()))
    return list(result)


@router.get("/predictive-alerts", response_model=list[PredictiveAlertRead])
async def list_predictive_alerts(
    vehicle_id: int | None = Query(default=None),
    company_id: int | None = Query(default=None),
    urgency_level: UrgencyLevel | None = Query(default=None),
    status_filter: PredictiveAlertStatus | None = Query(default=None, alias="status"),
    session: AsyncSession = Depends(get_db_session),
) -> list[PredictiveAlert]:
    query = select(PredictiveAlert)
    if vehicle_id is not None:
        query = query.where(PredictiveAlert.vehicle_id == vehicle_id)
    if company_id is not None:
        query = query.where(PredictiveAlert.company_id == company_id)
    if urgency_level is not None:
        query = query.where(PredictiveAlert.urgency_level == urgency_level)
    if status_filter is not None:
        query = query.where(PredictiveAlert.status == status_filter)

    result = await session.scalars(
        query.order_by(PredictiveAlert.urgency_score.desc(), PredictiveAlert.calculated_at.desc())
    )
    return list(result)


@router.post("/predictive-alerts/{alert_id}/resolve", response_model=PredictiveAlertRead)
async def resolve_predictive_alert(alert_id: int, session: AsyncSession = Depends(get_db_session)) -> PredictiveAlert:
    alert = await session.get(PredictiveAlert, alert_id)
    if alert is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Predictive alert not found")
    if alert.status == PredictiveAlertStatus.RESOLVED:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Predictive alert already resolved")

    alert.status = PredictiveAlertStatus.RESOLVED
    alert.resolved_at = utcnow()
    await session.commit()
    await session.refresh(alert)
    log_event("resolve_predictive_alert", f"alert_id={alert.id}, vehicle_id={alert.vehicle_id}")
    return alert
