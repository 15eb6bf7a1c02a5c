from datetime import date, timedelta

import pytest


async def _create_company(client, name="Transports Moreau") -> int:
    response = await client.post("/api/v1/companies", json={"name": name, "timezone": "Europe/Paris"})
    assert response.status_code == 201
    return response.json()["id"]


@pytest.mark.anyio
async def test_company_and_member_flow(client):
    company_id = await _create_company(client)

    response = await client.patch(f"/api/v1/companies/{company_id}", json={"name": "Moreau SAS"})
    assert response.status_code == 200
    assert response.json()["name"] == "Moreau SAS"

    for full_name, email, role in (
        ("Alice Admin", "alice@example.com", "ADMIN"),
        ("Bruno Parc", "bruno@example.com", "AGENT_DE_PARC"),
        ("Chloe Route", None, "CHAUFFEUR"),
    ):
        response = await client.post(
            f"/api/v1/companies/{company_id}/members",
            json={"full_name": full_name, "email": email, "role": role},
        )
        assert response.status_code == 201

    response = await client.get(f"/api/v1/companies/{company_id}/members", params={"role": "AGENT_DE_PARC"})
    assert [member["full_name"] for member in response.json()] == ["Bruno Parc"]

    member_id = response.json()[0]["id"]
    response = await client.patch(f"/api/v1/companies/{company_id}/members/{member_id}", json={"is_active": False})
    assert response.status_code == 200

    response = await client.get(f"/api/v1/companies/{company_id}/members", params={"active_only": True})
    assert len(response.json()) == 2

    response = await client.delete(f"/api/v1/companies/{company_id}/members/{member_id}")
    assert response.status_code == 204

    response = await client.get("/api/v1/companies/999")
    assert response.status_code == 404


@pytest.mark.anyio
async def test_vehicle_crud_and_registration_conflict(client):
    company_id = await _create_company(client)
    payload = {
        "company_id": company_id,
        "registration_number": "GH-789-IJ",
        "brand": "Iveco",
        "technical_control_expiry": (date.today() + timedelta(days=90)).isoformat(),
    }

    response = await client.post("/api/v1/vehicles", json=payload)
    assert response.status_code == 201
    vehicle_id = response.json()["id"]
    assert response.json()["status"] == "active"

    response = await client.post("/api/v1/vehicles", json=payload)
    assert response.status_code == 409

    response = await client.post("/api/v1/vehicles", json={**payload, "company_id": 999, "registration_number": "X"})
    assert response.status_code == 404

    response = await client.patch(f"/api/v1/vehicles/{vehicle_id}", json={"status": "retired", "atp_expiry": None})
    assert response.status_code == 200
    assert response.json()["status"] == "retired"

    response = await client.get("/api/v1/vehicles", params={"q": "789"})
    assert len(response.json()) == 1
    response = await client.get("/api/v1/vehicles", params={"status": "active"})
    assert response.json() == []

    response = await client.delete(f"/api/v1/vehicles/{vehicle_id}")
    assert response.status_code == 204
    response = await client.get(f"/api/v1/vehicles/{vehicle_id}")
    assert response.status_code == 404


@pytest.mark.anyio
async def test_driver_requires_license_expiry(client):
    company_id = await _create_company(client)

    response = await client.post(
        "/api/v1/drivers",
        json={"company_id": company_id, "first_name": "Eric", "last_name": "Petit"},
    )
    assert response.status_code == 422

    response = await client.post(
        "/api/v1/drivers",
        json={
            "company_id": company_id,
            "first_name": "Eric",
            "last_name": "Petit",
            "email": "  ",
            "license_expiry": (date.today() + timedelta(days=365)).isoformat(),
        },
    )
    assert response.status_code == 201
    driver = response.json()
    assert driver["email"] is None
    assert driver["cqc_expiry_date"] is None

    response = await client.patch(f"/api/v1/drivers/{driver['id']}", json={"license_expiry": None})
    assert response.status_code == 422

    response = await client.patch(f"/api/v1/drivers/{driver['id']}", json={"email": "eric@example.com"})
    assert response.status_code == 200
    assert response.json()["email"] == "eric@example.com"

    response = await client.get("/api/v1/drivers", params={"q": "Petit", "company_id": company_id})
    assert len(response.json()) == 1


@pytest.mark.anyio
async def test_maintenance_records_take_company_from_vehicle(client):
    company_id = await _create_company(client)
    response = await client.post("/api/v1/vehicles", json={"company_id": company_id, "registration_number": "KL-1"})
    vehicle_id = response.json()["id"]

    response = await client.post("/api/v1/maintenance", json={"vehicle_id": vehicle_id, "status": "RDV_PRIS"})
    assert response.status_code == 422

    response = await client.post("/api/v1/maintenance", json={"vehicle_id": vehicle_id, "description": "Freins"})
    assert response.status_code == 201
    record = response.json()
    assert record["company_id"] == company_id
    assert record["status"] == "DEMANDE"

    response = await client.patch(f"/api/v1/maintenance/{record['id']}", json={"status": "RDV_PRIS"})
    assert response.status_code == 422

    response = await client.patch(
        f"/api/v1/maintenance/{record['id']}",
        json={"status": "RDV_PRIS", "rdv_date": date.today().isoformat(), "rdv_time": "08:30:00"},
    )
    assert response.status_code == 200
    assert response.json()["rdv_time"] == "08:30:00"

    response = await client.get("/api/v1/maintenance", params={"status": "RDV_PRIS"})
    assert len(response.json()) == 1

    response = await client.delete(f"/api/v1/maintenance/{record['id']}")
    assert response.status_code == 204


@pytest.mark.anyio
async def test_actions_are_written_to_audit_log(client):
    await _create_company(client, name="Audit Transports")

    response = await client.get("/api/v1/tools/logs", params={"limit": 5})
    assert response.status_code == 200
    assert any("create_company" in line for line in response.json()["lines"])
