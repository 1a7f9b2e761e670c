"""Tests for appointment endpoints."""

from datetime import datetime, timedelta

import pytest
from conftest import auth_headers_for, future_slot
from httpx import AsyncClient


async def _book(client: AsyncClient, headers: dict, professional_id: int, when: datetime, **extra):
    payload = {"professional_id": professional_id, "scheduled_at": when.isoformat(), **extra}
    return await client.post("/api/v1/appointments/", json=payload, headers=headers)


@pytest.mark.asyncio
async def test_booking_scenario(
    client: AsyncClient,
    patient_headers: dict,
    receptionist_headers: dict,
    professional: dict,
) -> None:
    """Book, conflict, confirm twice, then hard delete."""
    slot = future_slot()

    response = await _book(client, patient_headers, professional["id"], slot)
    assert response.status_code == 201
    appointment = response.json()
    assert appointment["status"] == "scheduled"
    assert datetime.fromisoformat(appointment["scheduled_at"]) == slot

    conflict = await _book(client, patient_headers, professional["id"], slot)
    assert conflict.status_code == 409
    assert conflict.json()["error"] == "SlotConflict"

    url = f"/api/v1/appointments/{appointment['id']}"
    for _ in range(2):
        confirmed = await client.put(
            url, json={"status": "confirmed"}, headers=receptionist_headers
        )
        assert confirmed.status_code == 200
        assert confirmed.json()["status"] == "confirmed"

    history = await client.get(f"{url}/history", headers=receptionist_headers)
    assert [entry["status"] for entry in history.json()] == ["confirmed"]

    deleted = await client.delete(url, headers=receptionist_headers)
    assert deleted.status_code == 204

    missing = await client.get(url, headers=receptionist_headers)
    assert missing.status_code == 404
    assert missing.json()["error"] == "AppointmentNotFound"


@pytest.mark.asyncio
async def test_create_appointment_in_past(
    client: AsyncClient, patient_headers: dict, professional: dict
) -> None:
    response = await _book(
        client, patient_headers, professional["id"], future_slot(days=-2)
    )
    assert response.status_code == 400
    assert response.json()["error"] == "PastDateNotAllowed"


@pytest.mark.asyncio
async def test_create_appointment_unknown_professional(
    client: AsyncClient, patient_headers: dict
) -> None:
    response = await _book(client, patient_headers, 999, future_slot())
    assert response.status_code == 400
    assert response.json()["error"] == "InvalidProfessional"


@pytest.mark.asyncio
async def test_receptionist_books_for_patient(
    client: AsyncClient, receptionist_headers: dict, patient: dict, professional: dict
) -> None:
    missing_patient = await _book(client, receptionist_headers, professional["id"], future_slot())
    assert missing_patient.status_code == 400

    response = await _book(
        client, receptionist_headers, professional["id"], future_slot(), patient_id=patient["id"]
    )
    assert response.status_code == 201
    assert response.json()["patient_id"] == patient["id"]


@pytest.mark.asyncio
async def test_patient_books_for_self_only(
    client: AsyncClient, patient_headers: dict, patient: dict, make_user, professional: dict
) -> None:
    other = await make_user(name="Someone Else")

    response = await _book(
        client, patient_headers, professional["id"], future_slot(), patient_id=other["id"]
    )

    assert response.status_code == 201
    assert response.json()["patient_id"] == patient["id"]


@pytest.mark.asyncio
async def test_professional_cannot_book(
    client: AsyncClient, professional_headers: dict, professional: dict
) -> None:
    response = await _book(client, professional_headers, professional["id"], future_slot())
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_status_endpoint_soft_cancel(
    client: AsyncClient, patient_headers: dict, professional: dict
) -> None:
    created = (await _book(client, patient_headers, professional["id"], future_slot())).json()
    url = f"/api/v1/appointments/{created['id']}"

    response = await client.patch(
        f"{url}/status", json={"status": "canceled"}, headers=patient_headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "canceled"

    fetched = await client.get(url, headers=patient_headers)
    assert fetched.status_code == 200
    assert fetched.json()["status"] == "canceled"


@pytest.mark.asyncio
async def test_patient_cannot_confirm(
    client: AsyncClient, patient_headers: dict, professional: dict
) -> None:
    created = (await _book(client, patient_headers, professional["id"], future_slot())).json()

    response = await client.patch(
        f"/api/v1/appointments/{created['id']}/status",
        json={"status": "confirmed"},
        headers=patient_headers,
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_status_endpoint_rejects_scheduled(
    client: AsyncClient, patient_headers: dict, professional_headers: dict, professional: dict
) -> None:
    created = (await _book(client, patient_headers, professional["id"], future_slot())).json()

    response = await client.patch(
        f"/api/v1/appointments/{created['id']}/status",
        json={"status": "scheduled"},
        headers=professional_headers,
    )

    assert response.status_code == 422
    assert response.json()["error"] == "ValidationException"


@pytest.mark.asyncio
async def test_patient_cannot_see_others_appointments(
    client: AsyncClient, patient_headers: dict, make_user, professional: dict
) -> None:
    created = (await _book(client, patient_headers, professional["id"], future_slot())).json()
    intruder = await make_user(name="Intruder")

    response = await client.get(
        f"/api/v1/appointments/{created['id']}", headers=auth_headers_for(intruder)
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_professional_sees_only_own_appointments(
    client: AsyncClient, patient_headers: dict, professional: dict, make_professional
) -> None:
    other = await make_professional(name="Dr. Other")
    created = (await _book(client, patient_headers, professional["id"], future_slot())).json()

    denied = await client.get(
        f"/api/v1/appointments/{created['id']}", headers=auth_headers_for(other["user"])
    )
    allowed = await client.get(
        f"/api/v1/appointments/{created['id']}", headers=auth_headers_for(professional["user"])
    )

    assert denied.status_code == 403
    assert allowed.status_code == 200


@pytest.mark.asyncio
async def test_list_my_appointments(
    client: AsyncClient, patient_headers: dict, professional: dict
) -> None:
    await _book(client, patient_headers, professional["id"], future_slot(days=5))
    await _book(client, patient_headers, professional["id"], future_slot(days=2))

    response = await client.get("/api/v1/appointments/me", headers=patient_headers)

    assert response.status_code == 200
    dates = [datetime.fromisoformat(item["scheduled_at"]) for item in response.json()]
    assert dates == sorted(dates)
    assert len(dates) == 2


@pytest.mark.asyncio
async def test_list_all_requires_receptionist(
    client: AsyncClient, patient_headers: dict, receptionist_headers: dict, professional: dict
) -> None:
    await _book(client, patient_headers, professional["id"], future_slot())

    denied = await client.get("/api/v1/appointments/", headers=patient_headers)
    allowed = await client.get("/api/v1/appointments/", headers=receptionist_headers)

    assert denied.status_code == 403
    assert len(allowed.json()) == 1
    assert allowed.json()[0]["professional"]["name"] == "Dr. Ana Souza"


@pytest.mark.asyncio
async def test_professional_agenda_day_filter(
    client: AsyncClient, patient_headers: dict, professional_headers: dict, professional: dict
) -> None:
    first = future_slot(days=3, hour=15)
    await _book(client, patient_headers, professional["id"], first)
    await _book(client, patient_headers, professional["id"], first + timedelta(days=1))

    response = await client.get(
        "/api/v1/appointments/me/professional",
        params={"day": first.date().isoformat()},
        headers=professional_headers,
    )

    assert response.status_code == 200
    assert len(response.json()) == 1


@pytest.mark.asyncio
async def test_update_notes(
    client: AsyncClient, patient_headers: dict, professional_headers: dict, professional: dict
) -> None:
    created = (await _book(client, patient_headers, professional["id"], future_slot())).json()
    url = f"/api/v1/appointments/{created['id']}/notes"

    denied = await client.patch(url, json={"notes": "x"}, headers=patient_headers)
    response = await client.patch(url, json={"notes": ""}, headers=professional_headers)

    assert denied.status_code == 403
    assert response.status_code == 200
    assert response.json()["notes"] == ""


@pytest.mark.asyncio
async def test_requires_authentication(client: AsyncClient) -> None:
    response = await client.get("/api/v1/appointments/me")
    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_booking_sends_whatsapp_messages(
    client: AsyncClient, gateway, patient_headers: dict, professional: dict
) -> None:
    await _book(client, patient_headers, professional["id"], future_slot())

    assert len(gateway.requests) == 2
    assert gateway.requests[0].url.path == "/message/sendText/clinic"
    assert gateway.requests[0].headers["apikey"] == "test-api-key"
    assert "*Appointment Booked*" in gateway.sent_texts[0]


@pytest.mark.asyncio
async def test_my_appointments_is_patient_only(
    client: AsyncClient, professional_headers: dict, receptionist_headers: dict
) -> None:
    for headers in (professional_headers, receptionist_headers):
        response = await client.get("/api/v1/appointments/me", headers=headers)
        assert response.status_code == 403


@pytest.mark.asyncio
async def test_professional_update_limited_to_transitions(
    client: AsyncClient,
    patient_headers: dict,
    professional_headers: dict,
    make_user,
    professional: dict,
) -> None:
    created = (await _book(client, patient_headers, professional["id"], future_slot())).json()
    url = f"/api/v1/appointments/{created['id']}"
    other = await make_user(name="Someone Else")

    reassigned = await client.put(
        url, json={"patient_id": other["id"]}, headers=professional_headers
    )
    reverted = await client.put(url, json={"status": "scheduled"}, headers=professional_headers)
    finished = await client.put(
        url, json={"status": "finished", "notes": "All good"}, headers=professional_headers
    )

    assert reassigned.status_code == 403
    assert reverted.status_code == 403
    assert finished.status_code == 200
    assert finished.json()["status"] == "finished"
    assert finished.json()["patient_id"] == created["patient_id"]
