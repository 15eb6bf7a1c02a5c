from datetime import datetime

from pydantic import BaseModel, ConfigDict

from fleet_alerts.models.company import MemberRole


class CompanyBase(BaseModel):
    name: str
    timezone: str | None = None


class CompanyCreate(CompanyBase):
    pass


class CompanyUpdate(BaseModel):
    name: str | None = None
    timezone: str | None = None


class CompanyRead(CompanyBase):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MemberBase(BaseModel):
    full_name: str
    email: str | None = None
    role: MemberRole
    is_active: bool = True


class MemberCreate(MemberBase):
    pass


class MemberUpdate(BaseModel):
    full_name: str | None = None
    email: str | None = None
    role: MemberRole | None = None
    is_active: bool | None = None


class MemberRead(MemberBase):
    id: int
    company_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
