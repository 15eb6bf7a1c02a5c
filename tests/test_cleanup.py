from datetime import date, time, timedelta

import pytest
from sqlalchemy import select

from conftest import CRON_SECRET
from fleet_alerts.core.clock import utcnow
from fleet_alerts.models.alert_log import AlertLevel, AlertStatus, DocumentAlertLog, DocumentType, SubjectKind
from fleet_alerts.models.company import Company, MemberRole
from fleet_alerts.models.inspection import PredictiveAlert, PredictiveAlertStatus, UrgencyLevel
from fleet_alerts.models.maintenance import MaintenanceRecord, MaintenanceReminderLog, MaintenanceStatus, ReminderStatus
from fleet_alerts.models.vehicle import Vehicle
from fleet_alerts.scheduler.jobs import run_cleanup

CURRENT_CT = date(2026, 1, 10)
RENEWED_CT = date(2025, 1, 10)


@pytest.mark.anyio
async def test_cleanup_purges_only_stale_rows(session_factory, test_settings):
    old = utcnow() - timedelta(days=200)
    recent = utcnow() - timedelta(days=5)

    async with session_factory() as session:
        company = Company(name="Transports Blanc")
        session.add(company)
        await session.flush()
        vehicle = Vehicle(company_id=company.id, registration_number="CL-001-EA", technical_control_expiry=CURRENT_CT)
        session.add(vehicle)
        await session.flush()

        def alert_log(subject_id, expiry, level, created_at):
            return DocumentAlertLog(
                subject_kind=SubjectKind.VEHICLE,
                subject_id=subject_id,
                company_id=company.id,
                document_type=DocumentType.CT,
                alert_level=level,
                expiry_date=expiry,
                status=AlertStatus.SENT,
                created_at=created_at,
            )

        session.add_all(
            [
                # Still the vehicle's expiry date: must survive or the next scan re-alerts.
                alert_log(vehicle.id, CURRENT_CT, AlertLevel.OVERDUE, old),
                alert_log(vehicle.id, RENEWED_CT, AlertLevel.OVERDUE, old),
                alert_log(vehicle.id, RENEWED_CT, AlertLevel.REMINDER, recent),
                alert_log(9999, RENEWED_CT, AlertLevel.OVERDUE, old),
            ]
        )

        record = MaintenanceRecord(
            company_id=company.id,
            vehicle_id=vehicle.id,
            status=MaintenanceStatus.RDV_PRIS,
            rdv_date=date(2025, 6, 1),
            rdv_time=time(9, 0),
        )
        session.add(record)
        await session.flush()
        for email, created_at in (("old@example.com", old), ("new@example.com", recent)):
            session.add(
                MaintenanceReminderLog(
                    maintenance_record_id=record.id,
                    company_id=company.id,
                    recipient_email=email,
                    recipient_role=MemberRole.DIRECTEUR,
                    status=ReminderStatus.SENT,
                    created_at=created_at,
                )
            )

        def predictive(status, resolved_at):
            return PredictiveAlert(
                company_id=company.id,
                vehicle_id=vehicle.id,
                current_score=80,
                previous_score=90,
                degradation_speed=1.0,
                days_until_critical=10,
                predicted_control_date=date(2025, 6, 11),
                urgency_score=0.6,
                urgency_level=UrgencyLevel.CONTROLE_RECOMMANDE,
                component_concerned="General",
                reasoning="Score 90->80 en 10j",
                status=status,
                resolved_at=resolved_at,
            )

        session.add_all(
            [
                predictive(PredictiveAlertStatus.RESOLVED, old),
                predictive(PredictiveAlertStatus.RESOLVED, recent),
                predictive(PredictiveAlertStatus.ACTIVE, None),
            ]
        )
        await session.commit()
        vehicle_id = vehicle.id

    async with session_factory() as session:
        summary = await run_cleanup(session, settings=test_settings)

    assert summary.success
    assert summary.errors == []
    assert summary.document_alert_logs_deleted == 2
    assert summary.maintenance_reminder_logs_deleted == 1
    assert summary.predictive_alerts_deleted == 1

    async with session_factory() as session:
        logs = list(await session.scalars(select(DocumentAlertLog).order_by(DocumentAlertLog.id.asc())))
        reminders = list(await session.scalars(select(MaintenanceReminderLog)))
        alerts = list(await session.scalars(select(PredictiveAlert)))

    assert [(log.subject_id, log.expiry_date, log.alert_level) for log in logs] == [
        (vehicle_id, CURRENT_CT, AlertLevel.OVERDUE),
        (vehicle_id, RENEWED_CT, AlertLevel.REMINDER),
    ]
    assert [reminder.recipient_email for reminder in reminders] == ["new@example.com"]
    assert sorted(alert.status.value for alert in alerts) == ["active", "resolved"]


@pytest.mark.anyio
async def test_cleanup_cron_requires_secret(client):
    response = await client.get("/api/v1/cron/cleanup")
    assert response.status_code == 401

    response = await client.get("/api/v1/cron/cleanup", params={"secret": CRON_SECRET})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["document_alert_logs_deleted"] == 0
    assert body["errors"] == []
