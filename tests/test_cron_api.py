from datetime import date, timedelta

import pytest

from conftest import CRON_SECRET
from fleet_alerts.core.config import get_settings
from fleet_alerts.services.alert_service import local_today


async def _seed_vehicle(client, days: int, admin_email: str = "admin@example.com") -> int:
    response = await client.post("/api/v1/companies", json={"name": "Transports Lefebvre"})
    assert response.status_code == 201
    company_id = response.json()["id"]

    response = await client.post(
        f"/api/v1/companies/{company_id}/members",
        json={"full_name": "Claire Admin", "email": admin_email, "role": "ADMIN"},
    )
    assert response.status_code == 201

    response = await client.post(
        "/api/v1/vehicles",
        json={
            "company_id": company_id,
            "registration_number": "CR-001-ON",
            "technical_control_expiry": (date.today() + timedelta(days=days)).isoformat(),
        },
    )
    assert response.status_code == 201
    return company_id


@pytest.mark.anyio
async def test_cron_rejects_missing_or_wrong_secret(client, channel):
    await _seed_vehicle(client, days=45)

    response = await client.post("/api/v1/cron/document-expiry")
    assert response.status_code == 401

    response = await client.post("/api/v1/cron/document-expiry", headers={"x-cron-secret": "nope"})
    assert response.status_code == 401

    response = await client.get("/api/v1/cron/maintenance-reminders", params={"secret": "nope"})
    assert response.status_code == 401
    assert channel.sent == []


@pytest.mark.anyio
async def test_cron_rejects_when_secret_not_configured(client, monkeypatch):
    monkeypatch.delenv("CRON_SECRET")
    get_settings.cache_clear()

    response = await client.post("/api/v1/cron/document-expiry", headers={"x-cron-secret": ""})
    assert response.status_code == 401


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("headers", "params"),
    [
        ({"x-cron-secret": CRON_SECRET}, {}),
        ({"Authorization": f"Bearer {CRON_SECRET}"}, {}),
        ({}, {"secret": CRON_SECRET}),
    ],
)
async def test_cron_accepts_secret_from_header_bearer_or_query(client, channel, headers, params):
    await _seed_vehicle(client, days=45)

    response = await client.get("/api/v1/cron/document-expiry", headers=headers, params=params)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["alerts_sent"] == 1
    assert body["subjects_scanned"] == 1
    assert "timestamp" in body
    assert channel.sent_to() == ["admin@example.com"]

    response = await client.post("/api/v1/cron/document-expiry", headers=headers, params=params)
    assert response.status_code == 200
    assert response.json()["alerts_sent"] == 0
    assert response.json()["skipped_already_sent"] == 1

    response = await client.get("/api/v1/alert-logs", params={"document_type": "CT"})
    assert response.status_code == 200
    logs = response.json()
    assert len(logs) == 1
    assert logs[0]["alert_level"] == "J60"
    assert logs[0]["status"] == "sent"


@pytest.mark.anyio
async def test_cron_reports_partial_failure(client, channel):
    channel.transient_failures.add("down@example.com")
    await _seed_vehicle(client, days=10, admin_email="down@example.com")

    response = await client.post("/api/v1/cron/document-expiry", headers={"x-cron-secret": CRON_SECRET})
    assert response.status_code == 207
    body = response.json()
    assert body["success"] is False
    assert body["alerts_failed"] == 1

    response = await client.get("/api/v1/alert-logs", params={"status": "failed"})
    assert len(response.json()) == 1
    assert response.json()[0]["attempts"] == 4


@pytest.mark.anyio
async def test_cron_maintenance_reminders(client, channel):
    company_id = await _seed_vehicle(client, days=200)
    response = await client.post(
        f"/api/v1/companies/{company_id}/members",
        json={"full_name": "Hugo Parc", "email": "parc@example.com", "role": "AGENT_DE_PARC"},
    )
    assert response.status_code == 201

    vehicles = (await client.get("/api/v1/vehicles")).json()
    tomorrow = local_today(get_settings().reference_timezone) + timedelta(days=1)
    response = await client.post(
        "/api/v1/maintenance",
        json={
            "vehicle_id": vehicles[0]["id"],
            "status": "RDV_PRIS",
            "rdv_date": tomorrow.isoformat(),
            "rdv_time": "10:15:00",
        },
    )
    assert response.status_code == 201

    response = await client.post("/api/v1/cron/maintenance-reminders", headers={"x-cron-secret": CRON_SECRET})
    assert response.status_code == 200
    body = response.json()
    assert body["records_scanned"] == 1
    assert body["emails_sent"] == 1
    assert channel.sent_to() == ["parc@example.com"]
