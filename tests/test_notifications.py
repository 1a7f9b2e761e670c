"""Tests for notification dispatch, reminders and the notification log."""

from datetime import UTC, datetime, timedelta

import pytest
from conftest import auth_headers_for, future_slot
from httpx import AsyncClient
from sqlalchemy import func, insert, select

from app.models.appointments import appointments
from app.models.notifications import notifications
from app.schemas.notifications import (
    BookingCreatedDetails,
    CanceledDetails,
    NotificationEvent,
    NotificationType,
    PostVisitDetails,
    Recipient,
    ReminderDetails,
)
from app.services.message_templates import render_details, render_message


def _event(phone: str | None = "11912345678", content: str | None = None) -> NotificationEvent:
    return NotificationEvent(
        recipient=Recipient(user_id=1, role="patient", name="Maria Silva", phone=phone),
        details=ReminderDetails(scheduled_at=future_slot(), professional_name="Dr. Ana Souza"),
        content=content,
    )


async def _count_notifications(db_session) -> int:
    result = await db_session.execute(select(func.count()).select_from(notifications))
    return result.scalar_one()


async def _add_appointment(db_session, patient_id: int, professional_id: int, when, status):
    result = await db_session.execute(
        insert(appointments).values(
            patient_id=patient_id,
            professional_id=professional_id,
            scheduled_at=when,
            status=status,
        )
    )
    await db_session.commit()
    return result.inserted_primary_key[0]


@pytest.mark.asyncio
@pytest.mark.parametrize("phone", [None, "", "   "])
async def test_dispatch_skips_recipient_without_phone(
    notifier, db_session, gateway, patient, phone
) -> None:
    result = await notifier.dispatch(_event(phone=phone))

    assert result is None
    assert await _count_notifications(db_session) == 0
    assert gateway.requests == []


@pytest.mark.asyncio
async def test_dispatch_success_marks_sent(notifier, gateway, patient) -> None:
    gateway.payload = {"key": {"id": "ABC123"}, "status": "PENDING"}

    result = await notifier.dispatch(_event())

    assert result["status"] == "sent"
    assert result["gateway_message_id"] == "ABC123"
    assert result["type"] == NotificationType.REMINDER.value
    assert result["channel"] == "whatsapp"
    assert result["meta"]["kind"] == "reminder"
    assert gateway.requests[0].url.path == "/message/sendText/clinic"


@pytest.mark.asyncio
async def test_dispatch_gateway_error_marks_failed(notifier, gateway, patient) -> None:
    gateway.fail_with(500, "Instance not connected")

    result = await notifier.dispatch(_event())

    assert result["status"] == "failed"
    assert result["error_detail"] == "Instance not connected"
    assert len(gateway.requests) == 1


@pytest.mark.asyncio
async def test_dispatch_transport_error_marks_failed(notifier, gateway, patient) -> None:
    gateway.error = "connection refused"

    result = await notifier.dispatch(_event())

    assert result["status"] == "failed"
    assert result["error_detail"] == "connection refused"


@pytest.mark.asyncio
async def test_dispatch_uses_explicit_content(notifier, gateway, patient) -> None:
    await notifier.dispatch(_event(content="Custom text"))
    await notifier.dispatch(_event(content="   "))

    assert gateway.sent_texts[0] == "Custom text"
    assert gateway.sent_texts[1].startswith("*Appointment Reminder*")


@pytest.mark.asyncio
async def test_reminder_sweep_is_idempotent(
    notifier, db_session, gateway, patient, professional, make_user
) -> None:
    now = datetime.now(UTC)
    no_phone = await make_user(name="No Phone", phone=None)

    due = await _add_appointment(
        db_session, patient["id"], professional["id"], now + timedelta(hours=3), "confirmed"
    )
    await _add_appointment(
        db_session, patient["id"], professional["id"], now + timedelta(hours=4), "scheduled"
    )
    await _add_appointment(
        db_session, patient["id"], professional["id"], now + timedelta(hours=30), "confirmed"
    )
    await _add_appointment(
        db_session, no_phone["id"], professional["id"], now + timedelta(hours=5), "confirmed"
    )

    assert await notifier.dispatch_reminders(now) == 1
    assert await notifier.dispatch_reminders(now) == 0

    rows = await notifier.list_notifications(appointment_id=due)
    assert len(rows) == 1
    assert rows[0]["type"] == "reminder"
    assert rows[0]["recipient_id"] == patient["id"]
    assert len(gateway.requests) == 1


@pytest.mark.asyncio
async def test_failed_reminder_is_retried_next_sweep(
    notifier, db_session, gateway, patient, professional
) -> None:
    now = datetime.now(UTC)
    await _add_appointment(
        db_session, patient["id"], professional["id"], now + timedelta(hours=2), "confirmed"
    )

    gateway.fail_with(503, "Gateway down")
    assert await notifier.dispatch_reminders(now) == 1

    gateway.status_code = 201
    gateway.payload = {"key": {"id": "OK-1"}}
    assert await notifier.dispatch_reminders(now) == 1
    assert await notifier.dispatch_reminders(now) == 0


def test_templates_per_variant() -> None:
    when = datetime(2026, 11, 3, 13, 30, tzinfo=UTC)

    booked = render_details(
        BookingCreatedDetails(scheduled_at=when, professional_name="Dr. Ana Souza")
    )
    canceled = render_details(CanceledDetails(scheduled_at=when))
    post_visit = render_details(PostVisitDetails(professional_name="Dr. Ana Souza"))

    # 13:30 UTC is 10:30 in the clinic timezone
    assert "03/11/2026 10:30" in booked
    assert "Dr. Ana Souza" in booked
    assert "*Appointment Canceled*" in canceled
    assert "Dr. Ana Souza" in post_visit


def test_event_type_follows_details_variant() -> None:
    event = NotificationEvent(
        recipient=Recipient(user_id=1, role="patient", name="Maria"),
        details={"kind": "canceled", "scheduled_at": "2026-11-03T13:30:00Z"},
    )

    assert isinstance(event.details, CanceledDetails)
    assert event.notification_type == NotificationType.CANCELLATION
    assert render_message(event) == render_details(event.details)


@pytest.mark.asyncio
async def test_list_notifications_endpoint_scopes_by_role(
    client: AsyncClient,
    patient: dict,
    patient_headers: dict,
    receptionist_headers: dict,
    professional: dict,
) -> None:
    booked = await client.post(
        "/api/v1/appointments/",
        json={"professional_id": professional["id"], "scheduled_at": future_slot().isoformat()},
        headers=patient_headers,
    )
    appointment_id = booked.json()["id"]

    own = await client.get("/api/v1/notifications/", headers=patient_headers)
    everything = await client.get(
        "/api/v1/notifications/",
        params={"appointment_id": appointment_id},
        headers=receptionist_headers,
    )
    professional_view = await client.get(
        "/api/v1/notifications/", headers=auth_headers_for(professional["user"])
    )

    assert [item["recipient_id"] for item in own.json()] == [patient["id"]]
    assert len(everything.json()) == 2
    assert professional_view.json()[0]["meta"]["kind"] == "new_booking"
