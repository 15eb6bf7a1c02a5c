from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_alerts.api.deps import get_db_session
from fleet_alerts.models.company import Company
from fleet_alerts.models.driver import Driver, DriverStatus
from fleet_alerts.schemas.driver import DriverCreate, DriverRead, DriverUpdate
from fleet_alerts.services.audit_log_service import log_event

router = APIRouter(prefix="/drivers", tags=["drivers"])


@router.post("", response_model=DriverRead, status_code=status.HTTP_201_CREATED)
async def create_driver(payload: DriverCreate, session: AsyncSession = Depends(get_db_session)) -> Driver:
    if await session.get(Company, payload.company_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")

    data = payload.model_dump()
    if isinstance(data.get("email"), str) and not data["email"].strip():
        data["email"] = None

    driver = Driver(**data)
    session.add(driver)
    await session.commit()
    await session.refresh(driver)
    log_event("create_driver", f"driver_id={driver.id}, company_id={driver.company_id}")
    return driver


@router.get("", response_model=list[DriverRead])
async def list_drivers(
    q: str | None = Query(default=None),
    company_id: int | None = Query(default=None),
    status_filter: DriverStatus | None = Query(default=None, alias="status"),
    session: AsyncSession = Depends(get_db_session),
) -> list[Driver]:
    query = select(Driver)
    if q:
        like = f"%{q}%"
        query = query.where(
            or_(
                Driver.first_name.ilike(like),
                Driver.last_name.ilike(like),
                Driver.email.ilike(like),
                Driver.phone.ilike(like),
            )
        )
    if company_id is not None:
        query = query.where(Driver.company_id == company_id)
    if status_filter is not None:
        query = query.where(Driver.status == status_filter)

    result = await session.scalars(query.order_by(Driver.last_name.asc(), Driver.first_name.asc()))
    return list(result)


@router.get("/{driver_id}", response_model=DriverRead)
async def get_driver(driver_id: int, session: AsyncSession = Depends(get_db_session)) -> Driver:
    driver = await session.get(Driver, driver_id)
    if driver is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Driver not found")
    return driver


@router.patch("/{driver_id}", response_model=DriverRead)
async def update_driver(
    driver_id: int,
    payload: DriverUpdate,
    session: AsyncSession = Depends(get_db_session),
) -> Driver:
    driver = await session.get(Driver, driver_id)
    if driver is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Driver not found")

    updates = payload.model_dump(exclude_unset=True)
    if "license_expiry" in updates and updates["license_expiry"] is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Le permis de conduire requiert une date d'expiration.",
        )
    if isinstance(updates.get("email"), str) and not updates["email"].strip():
        updates["email"] = None

    for field, value in updates.items():
        setattr(driver, field, value)

    await session.commit()
    await session.refresh(driver)
    log_event("update_driver", f"driver_id={driver.id}")
    return driver


@router.delete("/{driver_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_driver(driver_id: int, session: AsyncSession = Depends(get_db_session)) -> Response:
    driver = await session.get(Driver, driver_id)
    if driver is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Driver not found")

    await session.delete(driver)
    await session.commit()
    log_event("delete_driver", f"driver_id={driver_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
