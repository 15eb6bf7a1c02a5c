from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_alerts.api.deps import get_db_session
from fleet_alerts.models.company import Company, Member, MemberRole
from fleet_alerts.schemas.company import (
    CompanyCreate,
    CompanyRead,
    CompanyUpdate,
    MemberCreate,
    MemberRead,
    MemberUpdate,
)
from fleet_alerts.services.audit_log_service import log_event

router = APIRouter(prefix="/companies", tags=["companies"])


async def _get_company_or_404(session: AsyncSession, company_id: int) -> Company:
    company = await session.get(Company, company_id)
    if company is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    return company


async def _get_member_or_404(session: AsyncSession, company_id: int, member_id: int) -> Member:
    member = await session.get(Member, member_id)
    if member is None or member.company_id != company_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    return member


@router.post("", response_model=CompanyRead, status_code=status.HTTP_201_CREATED)
async def create_company(payload: CompanyCreate, session: AsyncSession = Depends(get_db_session)) -> Company:
    company = Company(**payload.model_dump())
    session.add(company)
    await session.commit()
    await session.refresh(company)
    log_event("create_company", f"company_id={company.id}")
    return company


@router.get("", response_model=list[CompanyRead])
async def list_companies(
    q: str | None = Query(default=None),
    session: AsyncSession = Depends(get_db_session),
) -> list[Company]:
    query = select(Company)
    if q:
        query = query.where(Company.name.ilike(f"%{q}%"))
    result = await session.scalars(query.order_by(Company.name.asc()))
    return list(result)


@router.get("/{company_id}", response_model=CompanyRead)
async def get_company(company_id: int, session: AsyncSession = Depends(get_db_session)) -> Company:
    return await _get_company_or_404(session, company_id)


@router.patch("/{company_id}", response_model=CompanyRead)
async def update_company(
    company_id: int,
    payload: CompanyUpdate,
    session: AsyncSession = Depends(get_db_session),
) -> Company:
    company = await _get_company_or_404(session, company_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(company, field, value)

    await session.commit()
    await session.refresh(company)
    log_event("update_company", f"company_id={company.id}")
    return company


@router.delete("/{company_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_company(company_id: int, session: AsyncSession = Depends(get_db_session)) -> Response:
    company = await _get_company_or_404(session, company_id)
    await session.delete(company)
    await session.commit()
    log_event("delete_company", f"company_id={company_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{company_id}/members", response_model=MemberRead, status_code=status.HTTP_201_CREATED)
async def create_member(
    company_id: int,
    payload: MemberCreate,
    session: AsyncSession = Depends(get_db_session),
) -> Member:
    await _get_company_or_404(session, company_id)
    member = Member(company_id=company_id, **payload.model_dump())
    session.add(member)
    await session.commit()
    await session.refresh(member)
    log_event("create_member", f"member_id={member.id}, company_id={company_id}, role={member.role.value}")
    return member


@router.get("/{company_id}/members", response_model=list[MemberRead])
async def list_members(
    company_id: int,
    role: MemberRole | None = Query(default=None),
    active_only: bool = Query(default=False),
    session: AsyncSession = Depends(get_db_session),
) -> list[Member]:
    await _get_company_or_404(session, company_id)
    query = select(Member).where(Member.company_id == company_id)
    if role is not None:
        query = query.where(Member.role == role)
    if active_only:
        query = query.where(Member.is_active.is_(True))
    result = await session.scalars(query.order_by(Member.full_name.asc()))
    return list(result)


@router.patch("/{company_id}/members/{member_id}", response_model=MemberRead)
async def update_member(
    company_id: int,
    member_id: int,
    payload: MemberUpdate,
    session: AsyncSession = Depends(get_db_session),
) -> Member:
    member = await _get_member_or_404(session, company_id, member_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(member, field, value)

    await session.commit()
    await session.refresh(member)
    log_event("update_member", f"member_id={member.id}")
    return member


@router.delete("/{company_id}/members/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_member(
    company_id: int,
    member_id: int,
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    member = await _get_member_or_404(session, company_id, member_id)
    await session.delete(member)
    await session.commit()
    log_event("delete_member", f"member_id={member_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
