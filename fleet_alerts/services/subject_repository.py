from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_alerts.core.errors import DataFetchError
from fleet_alerts.models.company import Company, Member, MemberRole
from fleet_alerts.models.driver import Driver, DriverStatus
from fleet_alerts.models.vehicle import Vehicle, VehicleStatus
from fleet_alerts.models.alert_log import SubjectKind
from fleet_alerts.services.documents import MonitoredSubject, Recipient, RecipientKind, documents_for

logger = logging.getLogger(__name__)


def _vehicle_subject(vehicle: Vehicle, timezone: str | None) -> MonitoredSubject:
    return MonitoredSubject(
        kind=SubjectKind.VEHICLE,
        id=vehicle.id,
        company_id=vehicle.company_id,
        display_name=vehicle.label,
        timezone=timezone,
        expiries={spec.document_type: getattr(vehicle, spec.field) for spec in documents_for(SubjectKind.VEHICLE)},
    )


def _driver_subject(driver: Driver, timezone: str | None) -> MonitoredSubject:
    return MonitoredSubject(
        kind=SubjectKind.DRIVER,
        id=driver.id,
        company_id=driver.company_id,
        display_name=driver.full_name,
        first_name=driver.first_name,
        contact_email=driver.email,
        timezone=timezone,
        expiries={spec.document_type: getattr(driver, spec.field) for spec in documents_for(SubjectKind.DRIVER)},
    )


async def load_monitored_subjects(session: AsyncSession) -> list[MonitoredSubject]:
    """Active vehicles and drivers with their document expiry dates."""
    try:
        vehicle_rows = await session.execute(
            select(Vehicle, Company.timezone)
            .join(Company, Company.id == Vehicle.company_id)
            .where(Vehicle.status == VehicleStatus.ACTIVE)
            .order_by(Vehicle.id.asc())
        )
        driver_rows = await session.execute(
            select(Driver, Company.timezone)
            .join(Company, Company.id == Driver.company_id)
            .where(Driver.status == DriverStatus.ACTIVE)
            .order_by(Driver.id.asc())
        )
        subjects = [_vehicle_subject(vehicle, tz) for vehicle, tz in vehicle_rows.all()]
        subjects.extend(_driver_subject(driver, tz) for driver, tz in driver_rows.all())
    except SQLAlchemyError as exc:
        raise DataFetchError(f"failed to load monitored subjects: {exc}") from exc
    return subjects


async def load_recipient_directory(
    session: AsyncSession,
    company_ids: Iterable[int],
    roles: Iterable[MemberRole],
) -> dict[int, list[Recipient]]:
    """Active members with an email, grouped by company, in one query."""
    company_ids = sorted(set(company_ids))
    directory: dict[int, list[Recipient]] = defaultdict(list)
    if not company_ids:
        return directory

    try:
        members = await session.scalars(
            select(Member)
            .where(
                Member.company_id.in_(company_ids),
                Member.role.in_(list(roles)),
                Member.is_active.is_(True),
                Member.email.is_not(None),
            )
            .order_by(Member.id.asc())
        )
        rows = list(members)
    except SQLAlchemyError as exc:
        raise DataFetchError(f"failed to load company members: {exc}") from exc

    for member in rows:
        email = (member.email or "").strip()
        if "@" not in email:
            logger.warning("Skipping member %s with invalid email %r", member.id, email)
            continue
        directory[member.company_id].append(
            Recipient(kind=RecipientKind.MEMBER, email=email, name=member.full_name, role=member.role)
        )
    return directory
