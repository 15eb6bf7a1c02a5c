from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_alerts.api.deps import get_db_session
from fleet_alerts.models.maintenance import MaintenanceRecord, MaintenanceStatus
from fleet_alerts.models.vehicle import Vehicle
from fleet_alerts.schemas.maintenance import MaintenanceCreate, MaintenanceRead, MaintenanceUpdate
from fleet_alerts.services.audit_log_service import log_event

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@router.post("", response_model=MaintenanceRead, status_code=status.HTTP_201_CREATED)
async def create_maintenance(
    payload: MaintenanceCreate,
    session: AsyncSession = Depends(get_db_session),
) -> MaintenanceRecord:
    vehicle = await session.get(Vehicle, payload.vehicle_id)
    if vehicle is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vehicle not found")
    if payload.status == MaintenanceStatus.RDV_PRIS and payload.rdv_date is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Un RDV pris requiert une date de rendez-vous.",
        )

    record = MaintenanceRecord(company_id=vehicle.company_id, **payload.model_dump())
    session.add(record)
    await session.commit()
    await session.refresh(record)
    log_event("create_maintenance", f"maintenance_id={record.id}, vehicle_id={record.vehicle_id}")
    return record


@router.get("", response_model=list[MaintenanceRead])
async def list_maintenance(
    vehicle_id: int | None = Query(default=None),
    company_id: int | None = Query(default=None),
    status_filter: MaintenanceStatus | None = Query(default=None, alias="status"),
    rdv_from: date | None = Query(default=None),
    rdv_to: date | None = Query(default=None),
    session: AsyncSession = Depends(get_db_session),
) -> list[MaintenanceRecord]:
    query = select(MaintenanceRecord)
    if vehicle_id is not None:
        query = query.where(MaintenanceRecord.vehicle_id == vehicle_id)
    if company_id is not None:
        query = query.where(MaintenanceRecord.company_id == company_id)
    if status_filter is not None:
        query = query.where(MaintenanceRecord.status == status_filter)
    if rdv_from is not None:
        query = query.where(MaintenanceRecord.rdv_date >= rdv_from)
    if rdv_to is not None:
        query = query.where(MaintenanceRecord.rdv_date <= rdv_to)

    result = await session.scalars(query.order_by(MaintenanceRecord.rdv_date.asc(), MaintenanceRecord.id.asc()))
    return list(result)


@router.get("/{record_id}", response_model=MaintenanceRead)
async def get_maintenance(record_id: int, session: AsyncSession = Depends(get_db_session)) -> MaintenanceRecord:
    record = await session.get(MaintenanceRecord, record_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Maintenance record not found")
    return record


@router.patch("/{record_id}", response_model=MaintenanceRead)
async def update_maintenance(
    record_id: int,
    payload: MaintenanceUpdate,
    session: AsyncSession = Depends(get_db_session),
) -> MaintenanceRecord:
    record = await session.get(MaintenanceRecord, record_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Maintenance record not found")

    updates = payload.model_dump(exclude_unset=True)
    new_status = updates.get("status", record.status)
    if new_status == MaintenanceStatus.RDV_PRIS and not (updates.get("rdv_date") or record.rdv_date):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Un RDV pris requiert une date de rendez-vous.",
        )

    for field, value in updates.items():
        setattr(record, field, value)

    await session.commit()
    await session.refresh(record)
    log_event("update_maintenance", f"maintenance_id={record.id}, status={record.status.value}")
    return record


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_maintenance(record_id: int, session: AsyncSession = Depends(get_db_session)) -> Response:
    record = await session.get(MaintenanceRecord, record_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Maintenance record not found")

    await session.delete(record)
    await session.commit()
    log_event("delete_maintenance", f"maintenance_id={record_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
