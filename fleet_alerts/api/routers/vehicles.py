from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_alerts.api.deps import get_db_session
from fleet_alerts.models.company import Company
from fleet_alerts.models.vehicle import Vehicle, VehicleStatus
from fleet_alerts.schemas.vehicle import VehicleCreate, VehicleRead, VehicleUpdate
from fleet_alerts.services.audit_log_service import log_event

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


async def _ensure_registration_free(session: AsyncSession, registration: str, exclude_id: int | None = None) -> None:
    query = select(Vehicle.id).where(Vehicle.registration_number == registration)
    if exclude_id is not None:
        query = query.where(Vehicle.id != exclude_id)
    if await session.scalar(query):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Vehicle with this registration number already exists",
        )


@router.post("", response_model=VehicleRead, status_code=status.HTTP_201_CREATED)
async def create_vehicle(payload: VehicleCreate, session: AsyncSession = Depends(get_db_session)) -> Vehicle:
    if await session.get(Company, payload.company_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    await _ensure_registration_free(session, payload.registration_number)

    vehicle = Vehicle(**payload.model_dump())
    session.add(vehicle)
    await session.commit()
    await session.refresh(vehicle)
    log_event("create_vehicle", f"vehicle_id={vehicle.id}, registration={vehicle.registration_number}")
    return vehicle


@router.get("", response_model=list[VehicleRead])
async def list_vehicles(
    q: str | None = Query(default=None),
    company_id: int | None = Query(default=None),
    status_filter: VehicleStatus | None = Query(default=None, alias="status"),
    session: AsyncSession = Depends(get_db_session),
) -> list[Vehicle]:
    query = select(Vehicle)
    if q:
        like = f"%{q}%"
        query = query.where(
            or_(
                Vehicle.registration_number.ilike(like),
                Vehicle.brand.ilike(like),
                Vehicle.model.ilike(like),
            )
        )
    if company_id is not None:
        query = query.where(Vehicle.company_id == company_id)
    if status_filter is not None:
        query = query.where(Vehicle.status == status_filter)

    result = await session.scalars(query.order_by(Vehicle.registration_number.asc()))
    return list(result)


@router.get("/{vehicle_id}", response_model=VehicleRead)
async def get_vehicle(vehicle_id: int, session: AsyncSession = Depends(get_db_session)) -> Vehicle:
    vehicle = await session.get(Vehicle, vehicle_id)
    if vehicle is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vehicle not found")
    return vehicle


@router.patch("/{vehicle_id}", response_model=VehicleRead)
async def update_vehicle(
    vehicle_id: int,
    payload: VehicleUpdate,
    session: AsyncSession = Depends(get_db_session),
) -> Vehicle:
    vehicle = await session.get(Vehicle, vehicle_id)
    if vehicle is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vehicle not found")

    updates = payload.model_dump(exclude_unset=True)
    if updates.get("registration_number"):
        await _ensure_registration_free(session, updates["registration_number"], exclude_id=vehicle_id)

    for field, value in updates.items():
        setattr(vehicle, field, value)

    await session.commit()
    await session.refresh(vehicle)
    log_event("update_vehicle", f"vehicle_id={vehicle.id}")
    return vehicle


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vehicle(vehicle_id: int, session: AsyncSession = Depends(get_db_session)) -> Response:
    vehicle = await session.get(Vehicle, vehicle_id)
    if vehicle is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vehicle not found")

    await session.delete(vehicle)
    await session.commit()
    log_event("delete_vehicle", f"vehicle_id={vehicle_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
