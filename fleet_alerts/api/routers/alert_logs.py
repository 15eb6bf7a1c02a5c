from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_alerts.api.deps import get_db_session
from fleet_alerts.models.alert_log import AlertLevel, AlertStatus, DocumentAlertLog, DocumentType, SubjectKind
from fleet_alerts.schemas.alert_log import AlertLogRead

router = APIRouter(prefix="/alert-logs", tags=["alert-logs"])


@router.get("", response_model=list[AlertLogRead])
async def list_alert_logs(
    subject_kind: SubjectKind | None = Query(default=None),
    subject_id: int | None = Query(default=None),
    company_id: int | None = Query(default=None),
    document_type: DocumentType | None = Query(default=None),
    alert_level: AlertLevel | None = Query(default=None),
    status_filter: AlertStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=200, ge=1, le=1000),
    session: AsyncSession = Depends(get_db_session),
) -> list[DocumentAlertLog]:
    query = select(DocumentAlertLog)
    if subject_kind is not None:
        query = query.where(DocumentAlertLog.subject_kind == subject_kind)
    if subject_id is not None:
        query = query.where(DocumentAlertLog.subject_id == subject_id)
    if company_id is not None:
        query = query.where(DocumentAlertLog.company_id == company_id)
    if document_type is not None:
        query = query.where(DocumentAlertLog.document_type == document_type)
    if alert_level is not None:
        query = query.where(DocumentAlertLog.alert_level == alert_level)
    if status_filter is not None:
        query = query.where(DocumentAlertLog.status == status_filter)

    result = await session.scalars(query.order_by(DocumentAlertLog.created_at.desc(), DocumentAlertLog.id.desc()).limit(limit))
    return list(result)


@router.get("/{log_id}", response_model=AlertLogRead)
async def get_alert_log(log_id: int, session: AsyncSession = Depends(get_db_session)) -> DocumentAlertLog:
    entry = await session.get(DocumentAlertLog, log_id)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Alert log not found")
    return entry
