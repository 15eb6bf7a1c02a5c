import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_alerts.api.deps import get_db_session, get_notification_channel, get_settings, require_cron_secret
from fleet_alerts.core.config import Settings
from fleet_alerts.core.errors import DataFetchError
from fleet_alerts.messaging.channels import NotificationChannel
from fleet_alerts.scheduler.jobs import (
    run_cleanup,
    run_document_expiry_check,
    run_maintenance_reminders,
    run_predictive_alerts,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["cron"], dependencies=[Depends(require_cron_secret)])


def _fetch_failed(job: str, exc: DataFetchError) -> JSONResponse:
    logger.error("Cron %s aborted: %s", job, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": "Cron job failed", "details": str(exc)},
    )


@router.api_route("/document-expiry", methods=["GET", "POST"])
async def trigger_document_expiry(
    session: AsyncSession = Depends(get_db_session),
    channel: NotificationChannel = Depends(get_notification_channel),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    try:
        summary = await run_document_expiry_check(session, channel, settings=settings)
    except DataFetchError as exc:
        return _fetch_failed("document-expiry", exc)

    status_code = status.HTTP_200_OK if summary.success else status.HTTP_207_MULTI_STATUS
    return JSONResponse(status_code=status_code, content=summary.model_dump(mode="json"))


@router.api_route("/maintenance-reminders", methods=["GET", "POST"])
async def trigger_maintenance_reminders(
    session: AsyncSession = Depends(get_db_session),
    channel: NotificationChannel = Depends(get_notification_channel),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    try:
        summary = await run_maintenance_reminders(session, channel, settings=settings)
    except DataFetchError as exc:
        return _fetch_failed("maintenance-reminders", exc)

    status_code = status.HTTP_200_OK if summary.success else status.HTTP_207_MULTI_STATUS
    return JSONResponse(status_code=status_code, content=summary.model_dump(mode="json"))


@router.api_route("/predictive", methods=["GET", "POST"])
async def trigger_predictive_alerts(
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    try:
        summary = await run_predictive_alerts(session, settings=settings)
    except DataFetchError as exc:
        return _fetch_failed("predictive", exc)

    status_code = status.HTTP_200_OK if summary.success else status.HTTP_207_MULTI_STATUS
    return JSONResponse(status_code=status_code, content=summary.model_dump(mode="json"))


@router.api_route("/cleanup", methods=["GET", "POST"])
async def trigger_cleanup(
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    summary = await run_cleanup(session, settings=settings)
    status_code = status.HTTP_200_OK if summary.success else status.HTTP_207_MULTI_STATUS
    return JSONResponse(status_code=status_code, content=summary.model_dump(mode="json"))
