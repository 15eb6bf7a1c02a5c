from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime, time, timedelta

from sqlalchemy import and_, delete, exists, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_alerts.core.app_config import AppJSONConfig, get_app_json_config
from fleet_alerts.core.clock import utcnow
from fleet_alerts.core.config import Settings, get_settings
from fleet_alerts.core.errors import DataFetchError
from fleet_alerts.messaging.channels import NotificationChannel
from fleet_alerts.messaging.dispatcher import Dispatcher, RetryPolicy, Sleep, resolve_recipients, send_with_retry
from fleet_alerts.messaging.templates import build_maintenance_reminder_message, format_duration
from fleet_alerts.models.alert_log import AlertStatus, DocumentAlertLog, SubjectKind
from fleet_alerts.models.company import MemberRole
from fleet_alerts.models.driver import Driver
from fleet_alerts.models.inspection import PredictiveAlert, PredictiveAlertStatus, VehicleInspection
from fleet_alerts.models.maintenance import (
    REMINDER_TYPE_DAY_BEFORE,
    MaintenanceRecord,
    MaintenanceReminderLog,
    MaintenanceStatus,
    ReminderStatus,
)
from fleet_alerts.models.vehicle import Vehicle, VehicleStatus
from fleet_alerts.schemas.jobs import (
    CleanupSummary,
    DocumentCheckSummary,
    MaintenanceReminderSummary,
    MissingDocumentItem,
    PredictiveRunSummary,
)
from fleet_alerts.services.alert_log_store import AlertKey, AlertLogStore
from fleet_alerts.services.alert_service import classify, local_today
from fleet_alerts.services.audit_log_service import log_event
from fleet_alerts.services.documents import DOCUMENT_CATALOG, RECIPIENT_ROLES, SELF_NOTIFYING_KINDS, MonitoredSubject
from fleet_alerts.services.expiry_scanner import MissingDocument, scan_expiries
from fleet_alerts.services.predictive import InspectionSnapshot, predict_degradation
from fleet_alerts.services.subject_repository import load_monitored_subjects, load_recipient_directory

logger = logging.getLogger(__name__)

MAINTENANCE_RECIPIENT_ROLES = (MemberRole.DIRECTEUR, MemberRole.AGENT_DE_PARC, MemberRole.EXPLOITANT)
MAINTENANCE_REMINDER_STATUSES = (MaintenanceStatus.RDV_PRIS, MaintenanceStatus.VALIDEE_DIRECTEUR)


def _retry_policy(settings: Settings) -> RetryPolicy:
    return RetryPolicy(
        max_retries=settings.dispatch_max_retries,
        backoff_seconds=settings.dispatch_backoff_seconds,
    )


async def run_document_expiry_check(
    session: AsyncSession,
    channel: NotificationChannel,
    *,
    settings: Settings | None = None,
    app_config: AppJSONConfig | None = None,
    today: date | None = None,
    sleep: Sleep = asyncio.sleep,
) -> DocumentCheckSummary:
    """Scan vehicle and driver documents and send one alert per new (subject, type, level, expiry)."""
    settings = settings or get_settings()
    app_config = app_config or get_app_json_config()

    subjects = await load_monitored_subjects(session)
    all_roles = set().union(*RECIPIENT_ROLES.values())
    directory = await load_recipient_directory(session, {s.company_id for s in subjects}, all_roles)

    def reference_date(subject: MonitoredSubject) -> date:
        if today is not None:
            return today
        return local_today(subject.timezone, settings.reference_timezone)

    summary = DocumentCheckSummary(
        reference_date=today or local_today(settings.reference_timezone),
        subjects_scanned=len(subjects),
        subjects_unreachable=sum(1 for s in subjects if s.kind in SELF_NOTIFYING_KINDS and not s.is_reachable),
    )
    store = AlertLogStore(session)
    dispatcher = Dispatcher(channel, _retry_policy(settings), app_config.email, sleep=sleep)

    for item in scan_expiries(subjects, reference_date):
        if isinstance(item, MissingDocument):
            summary.missing_required += 1
            summary.missing_documents.append(
                MissingDocumentItem(
                    subject_kind=item.subject.kind,
                    subject_id=item.subject.id,
                    company_id=item.subject.company_id,
                    subject_name=item.subject.display_name,
                    document_type=item.spec.document_type,
                )
            )
            logger.warning(
                "Missing required %s for %s %s",
                item.spec.document_type.value,
                item.subject.kind.value,
                item.subject.id,
            )
            continue

        summary.documents_checked += 1
        thresholds = app_config.alerts.thresholds_for(item.spec.document_type.value)
        level = classify(item.days_remaining, thresholds)
        if level is None:
            summary.skipped_no_threshold += 1
            continue

        key = AlertKey(
            subject_kind=item.subject.kind,
            subject_id=item.subject.id,
            document_type=item.spec.document_type,
            alert_level=level,
            expiry_date=item.expiry_date,
        )
        if await store.has_been_sent(key):
            summary.skipped_already_sent += 1
            continue

        resolution = resolve_recipients(item.subject, directory.get(item.subject.company_id, []))
        if not resolution.recipients:
            summary.skipped_no_recipients += 1
            logger.warning("No recipients for %s, alert not sent", key)
            continue

        entry = await store.claim(key, company_id=item.subject.company_id)
        if entry is None:
            summary.skipped_already_sent += 1
            continue

        try:
            outcome = await dispatcher.dispatch(item, level, resolution)
        except Exception:
            # Only this tuple's claim is rolled back; it is evaluated again next run.
            logger.exception("Alert %s aborted for %s", level.value, key)
            await store.release()
            summary.alerts_failed += 1
            continue
        await store.complete(entry, outcome)

        if outcome.status == AlertStatus.SENT:
            summary.alerts_sent += 1
            logger.info(
                "Alert %s sent: %s %s / %s / expires %s",
                level.value,
                item.subject.kind.value,
                item.subject.display_name,
                item.spec.document_type.value,
                item.expiry_date.isoformat(),
            )
        else:
            summary.alerts_failed += 1
            logger.error("Alert %s failed for %s: %s", level.value, key, outcome.error_message)

    summary.success = summary.alerts_failed == 0
    log_event(
        "document_expiry_check",
        f"scanned={summary.subjects_scanned}, sent={summary.alerts_sent}, "
        f"failed={summary.alerts_failed}, skipped={summary.skipped_already_sent}",
    )
    logger.info("Document expiry check completed: %s", summary.model_dump(exclude={"missing_documents"}))
    return summary


@dataclass(frozen=True)
class _ReminderTarget:
    record_id: int
    company_id: int
    vehicle_label: str
    vehicle_active: bool
    rdv_date: date
    rdv_time: time
    garage_name: str | None
    garage_address: str | None
    duration_label: str


async def _load_reminder_targets(session: AsyncSession, rdv_date: date) -> list[_ReminderTarget]:
    try:
        rows = await session.execute(
            select(MaintenanceRecord, Vehicle)
            .join(Vehicle, Vehicle.id == MaintenanceRecord.vehicle_id, isouter=True)
            .where(
                MaintenanceRecord.rdv_date == rdv_date,
                MaintenanceRecord.status.in_(MAINTENANCE_REMINDER_STATUSES),
                MaintenanceRecord.rdv_time.is_not(None),
            )
            .order_by(MaintenanceRecord.id.asc())
        )
        pairs = rows.all()
    except SQLAlchemyError as exc:
        raise DataFetchError(f"failed to load maintenance records: {exc}") from exc

    return [
        _ReminderTarget(
            record_id=record.id,
            company_id=record.company_id,
            vehicle_label=vehicle.label if vehicle else "",
            vehicle_active=vehicle is not None
            and vehicle.status not in {VehicleStatus.INACTIVE, VehicleStatus.RETIRED},
            rdv_date=record.rdv_date,
            rdv_time=record.rdv_time,
            garage_name=record.garage_name,
            garage_address=record.garage_address,
            duration_label=format_duration(record.estimated_days, record.estimated_hours),
        )
        for record, vehicle in pairs
    ]


async def _reminder_exists(session: AsyncSession, record_id: int, email: str) -> bool:
    existing = await session.scalar(
        select(MaintenanceReminderLog.id).where(
            and_(
                MaintenanceReminderLog.maintenance_record_id == record_id,
                MaintenanceReminderLog.recipient_email == email,
                MaintenanceReminderLog.reminder_type == REMINDER_TYPE_DAY_BEFORE,
            )
        )
    )
    return existing is not None


async def run_maintenance_reminders(
    session: AsyncSession,
    channel: NotificationChannel,
    *,
    settings: Settings | None = None,
    app_config: AppJSONConfig | None = None,
    tomorrow: date | None = None,
    sleep: Sleep = asyncio.sleep,
) -> MaintenanceReminderSummary:
    """Email day-before reminders for booked maintenance appointments."""
    settings = settings or get_settings()
    app_config = app_config or get_app_json_config()
    rdv_date = tomorrow or local_today(settings.reference_timezone) + timedelta(days=1)

    summary = MaintenanceReminderSummary(date_scanned=rdv_date)
    targets = await _load_reminder_targets(session, rdv_date)
    summary.records_scanned = len(targets)
    if not targets:
        logger.info("Maintenance reminders: no appointment on %s", rdv_date.isoformat())
        return summary

    directory = await load_recipient_directory(
        session,
        {target.company_id for target in targets},
        MAINTENANCE_RECIPIENT_ROLES,
    )
    policy = _retry_policy(settings)

    for target in targets:
        if not target.vehicle_active:
            summary.skipped_inactive_vehicle += 1
            continue

        recipients = directory.get(target.company_id, [])
        if not recipients:
            summary.skipped_no_recipients += 1
            continue

        for recipient in recipients:
            if await _reminder_exists(session, target.record_id, recipient.email):
                summary.skipped_already_sent += 1
                continue

            entry = MaintenanceReminderLog(
                maintenance_record_id=target.record_id,
                company_id=target.company_id,
                recipient_email=recipient.email,
                recipient_role=recipient.role,
                reminder_type=REMINDER_TYPE_DAY_BEFORE,
                status=ReminderStatus.SENT,
            )
            session.add(entry)
            try:
                await session.flush()
            except IntegrityError:
                await session.rollback()
                summary.skipped_already_sent += 1
                continue

            try:
                message = build_maintenance_reminder_message(
                    to=recipient.email,
                    footer=app_config.email.footer,
                    vehicle_label=target.vehicle_label,
                    rdv_date=target.rdv_date,
                    rdv_time=target.rdv_time,
                    garage_name=target.garage_name,
                    garage_address=target.garage_address,
                    duration_label=target.duration_label,
                    detail_url=f"{settings.app_url.rstrip('/')}/dashboard/maintenance/{target.record_id}",
                )
                result = await send_with_retry(channel, message, policy, sleep)
            except Exception:
                logger.exception("Reminder for record %s to %s aborted", target.record_id, recipient.email)
                await session.rollback()
                summary.errors += 1
                continue

            if result.delivered:
                summary.emails_sent += 1
            else:
                entry.status = ReminderStatus.FAILED
                entry.error_message = result.error
                summary.errors += 1
                logger.error("Reminder for record %s to %s failed: %s", target.record_id, recipient.email, result.error)
            await session.commit()

    summary.success = summary.errors == 0
    log_event(
        "maintenance_reminders",
        f"date={rdv_date.isoformat()}, sent={summary.emails_sent}, errors={summary.errors}",
    )
    logger.info("Maintenance reminders completed: %s", summary.model_dump())
    return summary


async def _latest_scored_inspections(session: AsyncSession, vehicle_id: int, company_id: int) -> list[InspectionSnapshot]:
    rows = await session.scalars(
        select(VehicleInspection)
        .where(
            VehicleInspection.vehicle_id == vehicle_id,
            VehicleInspection.company_id == company_id,
            VehicleInspection.score.is_not(None),
        )
        .order_by(VehicleInspection.created_at.desc(), VehicleInspection.id.desc())
        .limit(2)
    )
    return [
        InspectionSnapshot(
            id=row.id,
            score=row.score,
            tires_condition=row.tires_condition,
            created_at=row.created_at,
        )
        for row in rows
    ]


async def run_predictive_alerts(
    session: AsyncSession,
    *,
    settings: Settings | None = None,
    today: date | None = None,
) -> PredictiveRunSummary:
    """Open one predictive alert per active vehicle whose inspection score is degrading."""
    settings = settings or get_settings()
    today = today or local_today(settings.reference_timezone)

    try:
        rows = await session.execute(
            select(Vehicle.id, Vehicle.company_id)
            .where(Vehicle.status == VehicleStatus.ACTIVE)
            .order_by(Vehicle.id.asc())
        )
        vehicles = rows.all()
    except SQLAlchemyError as exc:
        raise DataFetchError(f"failed to load vehicles: {exc}") from exc

    summary = PredictiveRunSummary(vehicles_scanned=len(vehicles))
    for vehicle_id, company_id in vehicles:
        try:
            active = await session.scalar(
                select(PredictiveAlert.id).where(
                    PredictiveAlert.vehicle_id == vehicle_id,
                    PredictiveAlert.status == PredictiveAlertStatus.ACTIVE,
                )
            )
            if active is not None:
                summary.skipped_active_alert += 1
                continue

            inspections = await _latest_scored_inspections(session, vehicle_id, company_id)
            if len(inspections) < 2:
                summary.skipped_insufficient_history += 1
                continue

            prediction = predict_degradation(inspections[0], inspections[1], today)
            if prediction is None:
                summary.skipped_stable += 1
                continue

            session.add(PredictiveAlert(company_id=company_id, vehicle_id=vehicle_id, **asdict(prediction)))
            await session.commit()
        except IntegrityError:
            # Another run opened the active alert first.
            await session.rollback()
            summary.skipped_active_alert += 1
            continue
        except SQLAlchemyError:
            logger.exception("Predictive analysis failed for vehicle %s", vehicle_id)
            await session.rollback()
            summary.errors += 1
            continue

        summary.alerts_created += 1
        logger.info(
            "Predictive alert %s for vehicle %s: %s",
            prediction.urgency_level.value,
            vehicle_id,
            prediction.reasoning,
        )

    summary.success = summary.errors == 0
    log_event(
        "predictive_alerts",
        f"scanned={summary.vehicles_scanned}, created={summary.alerts_created}, errors={summary.errors}",
    )
    logger.info("Predictive analysis completed: %s", summary.model_dump())
    return summary


def _stale_document_alert_logs(cutoff: datetime):
    """Delete statements for alert logs whose expiry date is no longer carried by their subject."""
    subject_models = {SubjectKind.VEHICLE: Vehicle, SubjectKind.DRIVER: Driver}
    for spec in DOCUMENT_CATALOG:
        model = subject_models[spec.subject_kind]
        still_current = exists().where(
            model.id == DocumentAlertLog.subject_id,
            getattr(model, spec.field) == DocumentAlertLog.expiry_date,
        ).correlate(DocumentAlertLog)
        yield (
            delete(DocumentAlertLog)
            .where(
                DocumentAlertLog.subject_kind == spec.subject_kind,
                DocumentAlertLog.document_type == spec.document_type,
                DocumentAlertLog.created_at < cutoff,
                ~still_current,
            )
            .execution_options(synchronize_session=False)
        )


async def run_cleanup(session: AsyncSession, *, settings: Settings | None = None) -> CleanupSummary:
    """Purge old delivery logs and resolved predictive alerts past the retention window.

    A document alert log is kept while its subject still carries the same
    expiry date, otherwise the next scan would alert again for that date.
    """
    settings = settings or get_settings()
    cutoff = utcnow() - timedelta(days=settings.cleanup_retention_days)
    summary = CleanupSummary(cutoff=cutoff)

    try:
        for statement in _stale_document_alert_logs(cutoff):
            result = await session.execute(statement)
            summary.document_alert_logs_deleted += result.rowcount
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        summary.document_alert_logs_deleted = 0
        summary.errors.append(f"document_alert_logs: {exc}")
        logger.exception("Cleanup of document alert logs failed")

    try:
        result = await session.execute(
            delete(MaintenanceReminderLog)
            .where(MaintenanceReminderLog.created_at < cutoff)
            .execution_options(synchronize_session=False)
        )
        await session.commit()
        summary.maintenance_reminder_logs_deleted = result.rowcount
    except SQLAlchemyError as exc:
        await session.rollback()
        summary.errors.append(f"maintenance_reminder_logs: {exc}")
        logger.exception("Cleanup of maintenance reminder logs failed")

    try:
        result = await session.execute(
            delete(PredictiveAlert)
            .where(
                PredictiveAlert.status == PredictiveAlertStatus.RESOLVED,
                PredictiveAlert.resolved_at < cutoff,
            )
            .execution_options(synchronize_session=False)
        )
        await session.commit()
        summary.predictive_alerts_deleted = result.rowcount
    except SQLAlchemyError as exc:
        await session.rollback()
        summary.errors.append(f"predictive_alerts: {exc}")
        logger.exception("Cleanup of predictive alerts failed")

    summary.success = not summary.errors
    log_event(
        "cleanup",
        f"alert_logs={summary.document_alert_logs_deleted}, "
        f"reminder_logs={summary.maintenance_reminder_logs_deleted}, "
        f"predictive_alerts={summary.predictive_alerts_deleted}, errors={len(summary.errors)}",
    )
    logger.info("Cleanup completed: %s", summary.model_dump())
    return summary
