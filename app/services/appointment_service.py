"""Appointment service for business logic."""

from collections.abc import Callable
from datetime import date, datetime
from typing import Any

import structlog
from sqlalchemy import and_, delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    AppointmentNotFound,
    InvalidProfessional,
    MissingRelation,
    NotFoundException,
    PastDateNotAllowed,
    SlotConflict,
    ValidationException,
)
from app.core.timeutils import day_bounds, ensure_utc, utcnow
from app.models.appointments import appointments, status_history
from app.models.notifications import notifications
from app.models.users import users
from app.schemas.appointments import (
    TRANSITION_STATUSES,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentUpdate,
    StatusHistoryResponse,
)
from app.schemas.notifications import (
    AgendaUpdatedDetails,
    BookingCreatedDetails,
    CanceledDetails,
    NewBookingDetails,
    NotificationEvent,
    PostVisitDetails,
    PresenceConfirmationDetails,
    Recipient,
    RescheduledDetails,
)
from app.schemas.users import UserSummary
from app.services.notification_service import NotificationService
from app.services.professional_service import ProfessionalService

logger = structlog.get_logger(__name__)


class AppointmentService:
    """Service for managing appointments."""

    def __init__(self, db: AsyncSession, notifier: NotificationService):
        """Initialize service with database session and notification dispatcher."""
        self.db = db
        self.notifier = notifier
        self.professionals = ProfessionalService(db)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def _hydrate(self, rows: list[Any]) -> list[AppointmentResponse]:
        """Attach patient and professional records to appointment rows."""
        if not rows:
            return []

        patient_ids = {row.patient_id for row in rows}
        result = await self.db.execute(
            select(users.c.id, users.c.name, users.c.email, users.c.phone, users.c.role).where(
                users.c.id.in_(patient_ids)
            )
        )
        patients = {row.id: UserSummary.model_validate(dict(row._mapping)) for row in result}
        profiles = await self.professionals.get_many({row.professional_id for row in rows})

        items = []
        for row in rows:
            data = dict(row._mapping)
            data["scheduled_at"] = ensure_utc(data["scheduled_at"])
            data["patient"] = patients.get(row.patient_id)
            data["professional"] = profiles.get(row.professional_id)
            items.append(AppointmentResponse.model_validate(data))
        return items

    async def _find_conflict(
        self,
        professional_id: int,
        scheduled_at: datetime,
        exclude_id: int | None = None,
    ) -> int | None:
        """
        Find an appointment occupying the exact slot.

        Canceled appointments are not excluded, so a canceled slot stays taken.
        """
        conditions = [
            appointments.c.professional_id == professional_id,
            appointments.c.scheduled_at == scheduled_at,
        ]
        if exclude_id is not None:
            conditions.append(appointments.c.id != exclude_id)

        result = await self.db.execute(select(appointments.c.id).where(and_(*conditions)).limit(1))
        return result.scalar()

    async def _ensure_patient(self, patient_id: int) -> None:
        result = await self.db.execute(select(users.c.id).where(users.c.id == patient_id))
        if result.first() is None:
            raise NotFoundException("Patient not found")

    async def get_appointment(self, appointment_id: int) -> AppointmentResponse:
        """
        Get appointment by ID.

        Args:
            appointment_id: Appointment ID

        Returns:
            Appointment with patient and professional

        Raises:
            AppointmentNotFound: If appointment not found
        """
        result = await self.db.execute(
            select(appointments).where(appointments.c.id == appointment_id)
        )
        row = result.fetchone()

        if not row:
            raise AppointmentNotFound()

        return (await self._hydrate([row]))[0]

    async def list_appointments(self) -> list[AppointmentResponse]:
        """List every appointment ordered by date."""
        result = await self.db.execute(
            select(appointments).order_by(
                appointments.c.scheduled_at.asc(), appointments.c.id.asc()
            )
        )
        return await self._hydrate(result.fetchall())

    async def list_for_patient(self, patient_id: int) -> list[AppointmentResponse]:
        """List a patient's appointments ordered by date."""
        result = await self.db.execute(
            select(appointments)
            .where(appointments.c.patient_id == patient_id)
            .order_by(appointments.c.scheduled_at.asc(), appointments.c.id.asc())
        )
        return await self._hydrate(result.fetchall())

    async def list_for_professional(
        self,
        professional_id: int,
        day: date | None = None,
    ) -> list[AppointmentResponse]:
        """
        List a professional's appointments ordered by date.

        Args:
            professional_id: Professional ID
            day: Optional clinic calendar day; keeps appointments between
                00:00:00 and 23:59:59 inclusive

        Returns:
            Appointments of the professional
        """
        conditions = [appointments.c.professional_id == professional_id]
        if day is not None:
            start, end = day_bounds(day)
            conditions.append(appointments.c.scheduled_at >= start)
            conditions.append(appointments.c.scheduled_at <= end)

        result = await self.db.execute(
            select(appointments)
            .where(and_(*conditions))
            .order_by(appointments.c.scheduled_at.asc(), appointments.c.id.asc())
        )
        return await self._hydrate(result.fetchall())

    async def list_status_history(self, appointment_id: int) -> list[StatusHistoryResponse]:
        """List status transitions of an appointment, oldest first."""
        result = await self.db.execute(
            select(status_history)
            .where(status_history.c.appointment_id == appointment_id)
            .order_by(status_history.c.changed_at.asc(), status_history.c.id.asc())
        )
        return [StatusHistoryResponse.model_validate(dict(row)) for row in result.mappings()]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_appointment(
        self,
        patient_id: int,
        professional_id: int,
        scheduled_at: datetime,
        notes: str | None = None,
    ) -> AppointmentResponse:
        """
        Book a new appointment.

        Args:
            patient_id: Patient user ID
            professional_id: Professional ID
            scheduled_at: Appointment date and time
            notes: Optional free-text notes

        Returns:
            Created appointment, status scheduled

        Raises:
            InvalidProfessional: If the professional does not exist
            PastDateNotAllowed: If the date is not in the future
            SlotConflict: If the professional already has an appointment then
            NotFoundException: If the patient does not exist
        """
        if not await self.professionals.exists(professional_id):
            raise InvalidProfessional()

        scheduled_at = ensure_utc(scheduled_at)
        if scheduled_at <= utcnow():
            raise PastDateNotAllowed()

        if await self._find_conflict(professional_id, scheduled_at):
            raise SlotConflict()

        await self._ensure_patient(patient_id)

        now = utcnow()
        result = await self.db.execute(
            insert(appointments).values(
                patient_id=patient_id,
                professional_id=professional_id,
                scheduled_at=scheduled_at,
                status=AppointmentStatus.SCHEDULED.value,
                notes=notes,
                created_at=now,
                updated_at=now,
            )
        )
        appointment_id = result.inserted_primary_key[0]
        await self.db.commit()

        logger.info(
            "appointment_created",
            appointment_id=appointment_id,
            professional_id=professional_id,
            patient_id=patient_id,
        )

        appointment = await self.get_appointment(appointment_id)

        await self._notify(
            appointment,
            lambda: NotificationEvent(
                recipient=self._patient_recipient(appointment),
                details=BookingCreatedDetails(
                    scheduled_at=appointment.scheduled_at,
                    professional_name=self._professional_name(appointment),
                ),
                appointment_id=appointment.id,
            ),
        )
        await self._notify_professional(
            appointment,
            lambda recipient: NotificationEvent(
                recipient=recipient,
                details=NewBookingDetails(
                    scheduled_at=appointment.scheduled_at,
                    patient_name=self._patient_recipient(appointment).name,
                ),
                appointment_id=appointment.id,
            ),
        )

        return appointment

    async def update_appointment(
        self,
        appointment_id: int,
        data: AppointmentUpdate,
        notify_transition: bool = False,
    ) -> AppointmentResponse:
        """
        Update an existing appointment.

        Any status of the enumeration may overwrite any other here. A status
        history row is written only when the status actually changes.

        Args:
            appointment_id: Appointment ID
            data: Fields to change
            notify_transition: Send the patient-facing confirmation and
                post-visit notices; set by the dedicated status transition

        Returns:
            Updated appointment

        Raises:
            AppointmentNotFound: If appointment not found
            InvalidProfessional: If a new professional does not exist
            PastDateNotAllowed: If a new date is not in the future
            SlotConflict: If the target slot is taken by another appointment
        """
        current = await self.get_appointment(appointment_id)

        update_values: dict[str, Any] = {}
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                if isinstance(value, AppointmentStatus):
                    update_values[field] = value.value
                else:
                    update_values[field] = value

        professional_changed = (
            "professional_id" in update_values
            and update_values["professional_id"] != current.professional_id
        )
        if professional_changed and not await self.professionals.exists(
            update_values["professional_id"]
        ):
            raise InvalidProfessional()

        if "patient_id" in update_values and update_values["patient_id"] != current.patient_id:
            await self._ensure_patient(update_values["patient_id"])

        new_at: datetime | None = None
        if "scheduled_at" in update_values:
            new_at = ensure_utc(update_values["scheduled_at"])
            if new_at <= utcnow():
                raise PastDateNotAllowed()
            update_values["scheduled_at"] = new_at

        if new_at is not None or professional_changed:
            target_professional = update_values.get("professional_id", current.professional_id)
            target_at = new_at or current.scheduled_at
            if await self._find_conflict(target_professional, target_at, exclude_id=appointment_id):
                raise SlotConflict()

        new_status = update_values.get("status")
        status_changed = new_status is not None and new_status != current.status.value

        if not update_values:
            return current

        now = utcnow()
        update_values["updated_at"] = now
        await self.db.execute(
            update(appointments)
            .where(appointments.c.id == appointment_id)
            .values(**update_values)
        )

        if status_changed:
            await self.db.execute(
                insert(status_history).values(
                    appointment_id=appointment_id,
                    status=new_status,
                    changed_at=now,
                )
            )

        await self.db.commit()

        logger.info(
            "appointment_updated",
            appointment_id=appointment_id,
            fields=sorted(key for key in update_values if key != "updated_at"),
            status_changed=status_changed,
        )

        updated = await self.get_appointment(appointment_id)

        date_changed = new_at is not None and new_at != current.scheduled_at
        if date_changed:
            await self._notify(
                updated,
                lambda: NotificationEvent(
                    recipient=self._patient_recipient(updated),
                    details=RescheduledDetails(
                        previous_at=current.scheduled_at, new_at=updated.scheduled_at
                    ),
                    appointment_id=updated.id,
                ),
            )
            await self._notify_professional(
                updated,
                lambda recipient: NotificationEvent(
                    recipient=recipient,
                    details=AgendaUpdatedDetails(
                        previous_at=current.scheduled_at,
                        new_at=updated.scheduled_at,
                        patient_name=self._patient_recipient(updated).name,
                    ),
                    appointment_id=updated.id,
                ),
            )

        if status_changed and new_status == AppointmentStatus.CANCELED.value:
            await self._notify_professional(
                updated,
                lambda recipient: NotificationEvent(
                    recipient=recipient,
                    details=CanceledDetails(scheduled_at=current.scheduled_at),
                    appointment_id=updated.id,
                ),
            )

        if notify_transition and status_changed:
            if new_status == AppointmentStatus.CONFIRMED.value:
                await self._notify(
                    updated,
                    lambda: NotificationEvent(
                        recipient=self._patient_recipient(updated),
                        details=PresenceConfirmationDetails(
                            scheduled_at=updated.scheduled_at,
                            professional_name=self._professional_name(updated),
                        ),
                        appointment_id=updated.id,
                    ),
                )
            elif new_status == AppointmentStatus.FINISHED.value:
                await self._notify(
                    updated,
                    lambda: NotificationEvent(
                        recipient=self._patient_recipient(updated),
                        details=PostVisitDetails(
                            professional_name=self._professional_name(updated),
                            notes=updated.notes,
                        ),
                        appointment_id=updated.id,
                    ),
                )

        return updated

    async def change_status(
        self,
        appointment_id: int,
        status: AppointmentStatus,
    ) -> AppointmentResponse:
        """
        Dedicated status transition: confirm, cancel or finish.

        Raises:
            ValidationException: If the status is not confirmed, canceled or finished
            AppointmentNotFound: If appointment not found
        """
        if status not in TRANSITION_STATUSES:
            raise ValidationException("Invalid status; expected confirmed, canceled or finished")

        return await self.update_appointment(
            appointment_id,
            AppointmentUpdate(status=status),
            notify_transition=True,
        )

    async def update_notes(self, appointment_id: int, notes: str) -> AppointmentResponse:
        """
        Overwrite appointment notes; an empty string is allowed.

        Raises:
            AppointmentNotFound: If appointment not found
        """
        await self.get_appointment(appointment_id)

        await self.db.execute(
            update(appointments)
            .where(appointments.c.id == appointment_id)
            .values(notes=notes, updated_at=utcnow())
        )
        await self.db.commit()

        return await self.get_appointment(appointment_id)

    async def delete_appointment(self, appointment_id: int) -> None:
        """
        Permanently delete an appointment and its status history.

        This is separate from setting the status to canceled, which keeps the row.

        Raises:
            AppointmentNotFound: If appointment not found
        """
        await self.get_appointment(appointment_id)

        await self.db.execute(
            update(notifications)
            .where(notifications.c.appointment_id == appointment_id)
            .values(appointment_id=None)
        )
        await self.db.execute(
            delete(status_history).where(status_history.c.appointment_id == appointment_id)
        )
        await self.db.execute(delete(appointments).where(appointments.c.id == appointment_id))
        await self.db.commit()

        logger.info("appointment_deleted", appointment_id=appointment_id)

    async def cancel_overdue(self, now: datetime | None = None) -> int:
        """
        Cancel past appointments that were never finished.

        Scheduled or confirmed appointments dated before ``now`` become
        canceled, each with a status history row. No notifications are sent.

        Returns:
            Number of appointments canceled
        """
        reference = ensure_utc(now) if now else utcnow()
        result = await self.db.execute(
            select(appointments.c.id).where(
                and_(
                    appointments.c.scheduled_at < reference,
                    appointments.c.status.in_(
                        [AppointmentStatus.SCHEDULED.value, AppointmentStatus.CONFIRMED.value]
                    ),
                )
            )
        )
        overdue_ids = list(result.scalars().all())
        if not overdue_ids:
            return 0

        stamp = utcnow()
        await self.db.execute(
            update(appointments)
            .where(appointments.c.id.in_(overdue_ids))
            .values(status=AppointmentStatus.CANCELED.value, updated_at=stamp)
        )
        await self.db.execute(
            insert(status_history),
            [
                {
                    "appointment_id": appointment_id,
                    "status": AppointmentStatus.CANCELED.value,
                    "changed_at": stamp,
                }
                for appointment_id in overdue_ids
            ],
        )
        await self.db.commit()

        logger.info("overdue_appointments_canceled", count=len(overdue_ids))
        return len(overdue_ids)

    # ------------------------------------------------------------------
    # Notification helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _patient_recipient(appointment: AppointmentResponse) -> Recipient:
        if appointment.patient is None:
            raise MissingRelation("appointment.patient")
        patient = appointment.patient
        return Recipient(
            user_id=patient.id,
            role=patient.role.value,
            name=patient.name,
            phone=patient.phone,
        )

    @staticmethod
    def _professional_name(appointment: AppointmentResponse) -> str:
        if appointment.professional is None:
            raise MissingRelation("appointment.professional")
        if appointment.professional.name is None:
            raise MissingRelation("appointment.professional.user")
        return appointment.professional.name

    async def _professional_recipient(self, appointment: AppointmentResponse) -> Recipient:
        if appointment.professional is None:
            raise MissingRelation("appointment.professional")
        result = await self.db.execute(
            select(users.c.id, users.c.name, users.c.role, users.c.phone).where(
                users.c.id == appointment.professional.user_id
            )
        )
        user = result.fetchone()
        if user is None:
            raise MissingRelation("appointment.professional.user")
        return Recipient(user_id=user.id, role=user.role, name=user.name, phone=user.phone)

    async def _notify(
        self,
        appointment: AppointmentResponse,
        build_event: Callable[[], NotificationEvent],
    ) -> None:
        """Dispatch a notification without letting failures reach the caller."""
        try:
            await self.notifier.dispatch(build_event())
        except Exception as e:
            await self.db.rollback()
            logger.warning(
                "failed_to_send_appointment_notification",
                appointment_id=appointment.id,
                error=str(e),
            )

    async def _notify_professional(
        self,
        appointment: AppointmentResponse,
        build_event: Callable[[Recipient], NotificationEvent],
    ) -> None:
        try:
            recipient = await self._professional_recipient(appointment)
        except MissingRelation as e:
            logger.warning(
                "failed_to_send_appointment_notification",
                appointment_id=appointment.id,
                error=e.message,
            )
            return
        await self._notify(appointment, lambda: build_event(recipient))
