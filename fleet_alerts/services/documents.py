from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date

from pydantic import BaseModel, ConfigDict, field_validator

from fleet_alerts.models.alert_log import DocumentType, SubjectKind
from fleet_alerts.models.company import MemberRole


@dataclass(frozen=True)
class DocumentSpec:
    document_type: DocumentType
    subject_kind: SubjectKind
    field: str
    label: str
    required: bool = False


DOCUMENT_CATALOG: tuple[DocumentSpec, ...] = (
    DocumentSpec(DocumentType.CT, SubjectKind.VEHICLE, "technical_control_expiry", "Controle technique (CT)"),
    DocumentSpec(DocumentType.TACHY, SubjectKind.VEHICLE, "tachy_control_expiry", "Controle tachygraphe"),
    DocumentSpec(DocumentType.ATP, SubjectKind.VEHICLE, "atp_expiry", "Certificat ATP"),
    DocumentSpec(DocumentType.LICENSE, SubjectKind.DRIVER, "license_expiry", "Permis de conduire", required=True),
    DocumentSpec(DocumentType.CQC, SubjectKind.DRIVER, "cqc_expiry_date", "CQC"),
)

RECIPIENT_ROLES: dict[SubjectKind, frozenset[MemberRole]] = {
    SubjectKind.VEHICLE: frozenset({MemberRole.ADMIN, MemberRole.DIRECTEUR, MemberRole.AGENT_DE_PARC}),
    SubjectKind.DRIVER: frozenset({MemberRole.ADMIN, MemberRole.DIRECTEUR}),
}

# Subjects that are people and receive their own alerts.
SELF_NOTIFYING_KINDS = frozenset({SubjectKind.DRIVER})


def documents_for(kind: SubjectKind) -> tuple[DocumentSpec, ...]:
    return tuple(spec for spec in DOCUMENT_CATALOG if spec.subject_kind == kind)


def get_document_spec(document_type: DocumentType) -> DocumentSpec:
    for spec in DOCUMENT_CATALOG:
        if spec.document_type == document_type:
            return spec
    raise KeyError(document_type)


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class MonitoredSubject(BaseModel):
    """A vehicle or driver as seen by the alert core.

    Built from ORM rows at the data-access boundary so the job never touches
    lazy-loaded attributes after a rollback.
    """

    kind: SubjectKind
    id: int
    company_id: int
    display_name: str
    first_name: str | None = None
    contact_email: str | None = None
    timezone: str | None = None
    expiries: dict[DocumentType, date | None]

    model_config = ConfigDict(frozen=True)

    @field_validator("contact_email")
    @classmethod
    def _normalize_email(cls, value: str | None) -> str | None:
        return _blank_to_none(value)

    @property
    def is_reachable(self) -> bool:
        return self.contact_email is not None


class RecipientKind(str, enum.Enum):
    MEMBER = "member"
    SUBJECT = "subject"


class Recipient(BaseModel):
    kind: RecipientKind
    email: str
    name: str
    role: MemberRole | None = None

    model_config = ConfigDict(frozen=True)

    @field_validator("email")
    @classmethod
    def _require_email(cls, value: str) -> str:
        value = value.strip()
        if "@" not in value:
            raise ValueError("recipient email must contain '@'")
        return value
