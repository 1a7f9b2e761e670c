"""Notification service for sending appointment messages over WhatsApp."""

from datetime import datetime, timedelta
from typing import Any

import structlog
from sqlalchemy import and_, desc, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.timeutils import ensure_utc, utcnow
from app.models.appointments import appointments
from app.models.notifications import notifications
from app.models.professionals import professionals
from app.models.users import users
from app.schemas.appointments import AppointmentStatus
from app.schemas.notifications import (
    NotificationChannel,
    NotificationEvent,
    NotificationStatus,
    NotificationType,
    Recipient,
    ReminderDetails,
)
from app.services.message_templates import render_message
from app.services.whatsapp_service import UNKNOWN_ERROR, WhatsAppClient

logger = structlog.get_logger(__name__)


class NotificationService:
    """Service that renders, records and delivers notifications."""

    def __init__(self, db: AsyncSession, whatsapp: WhatsAppClient):
        """Initialize service with database session and gateway client."""
        self.db = db
        self.whatsapp = whatsapp

    async def dispatch(self, event: NotificationEvent) -> dict[str, Any] | None:
        """
        Deliver one notification, attempting the gateway exactly once.

        Recipients without a phone number are skipped without creating a
        record. Gateway failures are stored on the notification row and never
        raised; database errors propagate.

        Args:
            event: Notification event to deliver

        Returns:
            The notification row, or None when the recipient has no phone
        """
        recipient = event.recipient
        if not recipient.phone or not recipient.phone.strip():
            logger.warning(
                "notification_skipped_no_phone",
                recipient_id=recipient.user_id,
                recipient_name=recipient.name,
                notification_type=event.notification_type.value,
            )
            return None

        content = render_message(event)

        result = await self.db.execute(
            insert(notifications).values(
                type=event.notification_type.value,
                channel=NotificationChannel.WHATSAPP.value,
                recipient_id=recipient.user_id,
                recipient_role=recipient.role,
                content=content,
                meta=event.details.model_dump(mode="json"),
                status=NotificationStatus.CREATED.value,
                appointment_id=event.appointment_id,
            )
        )
        notification_id = result.inserted_primary_key[0]
        await self.db.commit()

        send_result = await self.whatsapp.send_text(recipient.phone, content)

        if send_result.success:
            values = {
                "status": NotificationStatus.SENT.value,
                "gateway_message_id": send_result.message_id,
            }
            logger.info(
                "notification_sent",
                notification_id=notification_id,
                recipient_id=recipient.user_id,
                notification_type=event.notification_type.value,
            )
        else:
            values = {
                "status": NotificationStatus.FAILED.value,
                "error_detail": send_result.error or UNKNOWN_ERROR,
            }
            logger.error(
                "notification_failed",
                notification_id=notification_id,
                recipient_id=recipient.user_id,
                error=values["error_detail"],
            )

        await self.db.execute(
            update(notifications)
            .where(notifications.c.id == notification_id)
            .values(updated_at=utcnow(), **values)
        )
        await self.db.commit()

        row = await self.db.execute(
            select(notifications).where(notifications.c.id == notification_id)
        )
        return dict(row.mappings().one())

    async def has_sent_reminder(self, appointment_id: int) -> bool:
        """Check whether a reminder was already delivered for the appointment."""
        result = await self.db.execute(
            select(notifications.c.id)
            .where(
                notifications.c.appointment_id == appointment_id,
                notifications.c.type == NotificationType.REMINDER.value,
                notifications.c.status == NotificationStatus.SENT.value,
            )
            .limit(1)
        )
        return result.first() is not None

    async def dispatch_reminders(self, now: datetime | None = None) -> int:
        """
        Send reminders for confirmed appointments inside the reminder window.

        Appointments that already have a sent reminder, or whose patient has no
        phone, are skipped, so re-running the sweep is safe. Two sweeps running
        at the same time can still both send.

        Args:
            now: Reference time, defaults to the current time

        Returns:
            Number of reminders dispatched
        """
        start = ensure_utc(now) if now else utcnow()
        end = start + timedelta(hours=settings.reminder_window_hours)

        patient = users.alias("patient")
        professional_user = users.alias("professional_user")

        query = (
            select(
                appointments.c.id,
                appointments.c.scheduled_at,
                patient.c.id.label("patient_id"),
                patient.c.name.label("patient_name"),
                patient.c.role.label("patient_role"),
                patient.c.phone.label("patient_phone"),
                professional_user.c.name.label("professional_name"),
            )
            .select_from(
                appointments.join(patient, patient.c.id == appointments.c.patient_id)
                .join(professionals, professionals.c.id == appointments.c.professional_id)
                .join(professional_user, professional_user.c.id == professionals.c.user_id)
            )
            .where(
                and_(
                    appointments.c.status == AppointmentStatus.CONFIRMED.value,
                    appointments.c.scheduled_at >= start,
                    appointments.c.scheduled_at <= end,
                )
            )
            .order_by(appointments.c.scheduled_at.asc())
        )

        result = await self.db.execute(query)
        rows = result.fetchall()

        dispatched = 0
        for row in rows:
            if not row.patient_phone:
                continue
            if await self.has_sent_reminder(row.id):
                continue

            await self.dispatch(
                NotificationEvent(
                    recipient=Recipient(
                        user_id=row.patient_id,
                        role=row.patient_role,
                        name=row.patient_name,
                        phone=row.patient_phone,
                    ),
                    details=ReminderDetails(
                        scheduled_at=ensure_utc(row.scheduled_at),
                        professional_name=row.professional_name,
                    ),
                    appointment_id=row.id,
                )
            )
            dispatched += 1

        logger.info("reminder_sweep_completed", candidates=len(rows), dispatched=dispatched)
        return dispatched

    async def list_notifications(
        self,
        recipient_id: int | None = None,
        appointment_id: int | None = None,
    ) -> list[dict[str, Any]]:
        """
        List notification log entries, newest first.

        Args:
            recipient_id: Restrict to one recipient
            appointment_id: Restrict to one appointment

        Returns:
            Notification rows
        """
        query = select(notifications)
        if recipient_id is not None:
            query = query.where(notifications.c.recipient_id == recipient_id)
        if appointment_id is not None:
            query = query.where(notifications.c.appointment_id == appointment_id)

        query = query.order_by(desc(notifications.c.created_at), desc(notifications.c.id))
        result = await self.db.execute(query)
        return [dict(row) for row in result.mappings().all()]
