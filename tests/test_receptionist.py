"""Tests for receptionist user management and dashboard endpoints."""

from datetime import UTC, datetime, timedelta

import pytest
from conftest import auth_headers_for, future_slot
from httpx import AsyncClient
from sqlalchemy import insert

from app.models.appointments import appointments


@pytest.mark.asyncio
async def test_create_patient(client: AsyncClient, receptionist_headers: dict) -> None:
    response = await client.post(
        "/api/v1/receptionist/users",
        json={
            "name": "João Pereira",
            "email": "joao@example.com",
            "password": "secret123",
            "phone": "11955554444",
        },
        headers=receptionist_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["role"] == "patient"
    assert data["professional"] is None
    assert "password" not in data


@pytest.mark.asyncio
async def test_create_professional_with_profile(
    client: AsyncClient, receptionist_headers: dict, specialty: dict
) -> None:
    payload = {
        "name": "Dr. Paula Reis",
        "email": "paula@example.com",
        "password": "secret123",
        "role": "professional",
        "specialty_id": specialty["id"],
        "working_days": ["monday", "wednesday"],
        "start_time": "09:00",
        "end_time": "17:00",
    }

    response = await client.post(
        "/api/v1/receptionist/users", json=payload, headers=receptionist_headers
    )

    assert response.status_code == 201
    profile = response.json()["professional"]
    assert profile["specialty"]["name"] == "Cardiology"
    assert profile["working_days"] == ["monday", "wednesday"]
    assert profile["start_time"] == "09:00"


@pytest.mark.asyncio
async def test_create_professional_requires_specialty(
    client: AsyncClient, receptionist_headers: dict
) -> None:
    response = await client.post(
        "/api/v1/receptionist/users",
        json={
            "name": "Dr. Nobody",
            "email": "nobody@example.com",
            "password": "secret123",
            "role": "professional",
        },
        headers=receptionist_headers,
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_duplicate_email_conflict(
    client: AsyncClient, receptionist_headers: dict, patient: dict
) -> None:
    response = await client.post(
        "/api/v1/receptionist/users",
        json={"name": "Copy", "email": patient["email"], "password": "secret123"},
        headers=receptionist_headers,
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_update_and_delete_user(
    client: AsyncClient, receptionist_headers: dict, patient: dict, professional: dict, db_session
) -> None:
    await db_session.execute(
        insert(appointments).values(
            patient_id=patient["id"],
            professional_id=professional["id"],
            scheduled_at=future_slot(),
        )
    )
    await db_session.commit()
    url = f"/api/v1/receptionist/users/{patient['id']}"

    updated = await client.put(url, json={"phone": "11900000000"}, headers=receptionist_headers)
    assert updated.status_code == 200
    assert updated.json()["phone"] == "11900000000"

    deleted = await client.delete(url, headers=receptionist_headers)
    assert deleted.status_code == 204

    listed = await client.get("/api/v1/receptionist/users", headers=receptionist_headers)
    assert patient["id"] not in [user["id"] for user in listed.json()]
    remaining = await client.get("/api/v1/appointments/", headers=receptionist_headers)
    assert remaining.json() == []


@pytest.mark.asyncio
async def test_user_management_requires_receptionist(
    client: AsyncClient, patient_headers: dict
) -> None:
    response = await client.get("/api/v1/receptionist/users", headers=patient_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_dashboard_summary(
    client: AsyncClient,
    db_session,
    receptionist_headers: dict,
    patient: dict,
    professional: dict,
) -> None:
    now = datetime.now(UTC)
    await db_session.execute(
        insert(appointments),
        [
            {
                "patient_id": patient["id"],
                "professional_id": professional["id"],
                "scheduled_at": now + timedelta(minutes=1),
                "status": "canceled",
            },
            {
                "patient_id": patient["id"],
                "professional_id": professional["id"],
                "scheduled_at": now + timedelta(days=70),
                "status": "canceled",
            },
        ],
    )
    await db_session.commit()

    response = await client.get(
        "/api/v1/receptionist/dashboard-summary", headers=receptionist_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total_users"] == 3
    assert data["total_patients"] == 1
    assert data["total_professionals"] == 1
    assert data["canceled_this_month"] == 1


@pytest.mark.asyncio
async def test_promote_patient_to_professional_creates_profile(
    client: AsyncClient, receptionist_headers: dict, patient: dict, specialty: dict
) -> None:
    url = f"/api/v1/receptionist/users/{patient['id']}"

    missing = await client.put(url, json={"role": "professional"}, headers=receptionist_headers)
    assert missing.status_code == 400

    promoted = await client.put(
        url,
        json={"role": "professional", "specialty_id": specialty["id"]},
        headers=receptionist_headers,
    )
    assert promoted.status_code == 200
    assert promoted.json()["role"] == "professional"

    agenda = await client.get(
        "/api/v1/appointments/me/professional", headers=auth_headers_for(promoted.json())
    )
    listed = await client.get("/api/v1/professionals/", headers=receptionist_headers)

    assert agenda.status_code == 200
    assert agenda.json() == []
    assert [item["user_id"] for item in listed.json()] == [patient["id"]]


@pytest.mark.asyncio
async def test_demote_professional_removes_profile(
    client: AsyncClient, receptionist_headers: dict, patient_headers: dict, professional: dict
) -> None:
    response = await client.put(
        f"/api/v1/receptionist/users/{professional['user']['id']}",
        json={"role": "patient"},
        headers=receptionist_headers,
    )

    assert response.status_code == 200
    listed = await client.get("/api/v1/professionals/", headers=receptionist_headers)
    assert listed.json() == []

    booking = await client.post(
        "/api/v1/appointments/",
        json={"professional_id": professional["id"], "scheduled_at": future_slot().isoformat()},
        headers=patient_headers,
    )
    assert booking.status_code == 400
    assert booking.json()["error"] == "InvalidProfessional"


@pytest.mark.asyncio
async def test_demote_professional_with_appointments_conflicts(
    client: AsyncClient, db_session, receptionist_headers: dict, patient: dict, professional: dict
) -> None:
    await db_session.execute(
        insert(appointments).values(
            patient_id=patient["id"],
            professional_id=professional["id"],
            scheduled_at=future_slot(),
        )
    )
    await db_session.commit()

    response = await client.put(
        f"/api/v1/receptionist/users/{professional['user']['id']}",
        json={"role": "receptionist"},
        headers=receptionist_headers,
    )

    assert response.status_code == 409
    listed = await client.get("/api/v1/professionals/", headers=receptionist_headers)
    assert [item["id"] for item in listed.json()] == [professional["id"]]
