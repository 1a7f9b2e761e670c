"""Professional service for profiles and availability."""

from datetime import UTC, date, datetime, time, timedelta
from typing import Any

from sqlalchemy import and_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import BadRequestException, NotFoundException
from app.core.timeutils import clinic_tz, day_bounds, ensure_utc, utcnow
from app.models.appointments import appointments
from app.models.professionals import professionals, specialties
from app.models.users import users
from app.schemas.professionals import (
    AvailabilityResponse,
    ProfessionalResponse,
    ProfessionalUpdate,
    Weekday,
)


def _professional_query():
    return select(
        professionals,
        users.c.name.label("name"),
        users.c.email.label("email"),
        specialties.c.name.label("specialty_name"),
    ).select_from(
        professionals.outerjoin(users, users.c.id == professionals.c.user_id).outerjoin(
            specialties, specialties.c.id == professionals.c.specialty_id
        )
    )


def _to_response(row: Any) -> ProfessionalResponse:
    data = dict(row._mapping)
    specialty_name = data.pop("specialty_name", None)
    data["specialty"] = (
        {"id": data["specialty_id"], "name": specialty_name} if specialty_name is not None else None
    )
    data["working_days"] = data.get("working_days") or []
    return ProfessionalResponse.model_validate(data)


class ProfessionalService:
    """Service for professional operations."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def list_professionals(
        self,
        specialty_id: int | None = None,
    ) -> list[ProfessionalResponse]:
        """List professionals ordered by name, optionally for one specialty."""
        query = _professional_query()
        if specialty_id is not None:
            query = query.where(professionals.c.specialty_id == specialty_id)
        result = await self.db.execute(query.order_by(users.c.name.asc()))
        return [_to_response(row) for row in result.fetchall()]

    async def get_professional(self, professional_id: int) -> ProfessionalResponse:
        """
        Get professional by ID.

        Raises:
            NotFoundException: If professional not found
        """
        result = await self.db.execute(
            _professional_query().where(professionals.c.id == professional_id)
        )
        row = result.fetchone()
        if not row:
            raise NotFoundException("Professional not found")
        return _to_response(row)

    async def get_professional_by_user(self, user_id: int) -> ProfessionalResponse:
        """
        Get the professional profile owned by a user.

        Raises:
            NotFoundException: If the user has no professional profile
        """
        result = await self.db.execute(
            _professional_query().where(professionals.c.user_id == user_id)
        )
        row = result.fetchone()
        if not row:
            raise NotFoundException("Professional not found")
        return _to_response(row)

    async def get_many(self, professional_ids: set[int]) -> dict[int, ProfessionalResponse]:
        """Load several professionals keyed by ID."""
        if not professional_ids:
            return {}
        result = await self.db.execute(
            _professional_query().where(professionals.c.id.in_(professional_ids))
        )
        return {row.id: _to_response(row) for row in result.fetchall()}

    async def exists(self, professional_id: int) -> bool:
        """Check whether a professional exists."""
        result = await self.db.execute(
            select(professionals.c.id).where(professionals.c.id == professional_id)
        )
        return result.first() is not None

    async def update_professional(
        self,
        professional_id: int,
        data: ProfessionalUpdate,
    ) -> ProfessionalResponse:
        """
        Update a professional profile.

        Raises:
            NotFoundException: If professional or specialty not found
        """
        current = await self.get_professional(professional_id)

        update_values = {
            field: value
            for field, value in data.model_dump(exclude_unset=True, mode="json").items()
            if value is not None
        }
        if not update_values:
            return current

        start = update_values.get("start_time", current.start_time)
        end = update_values.get("end_time", current.end_time)
        if end <= start:
            raise BadRequestException("end_time must be after start_time")

        if "specialty_id" in update_values:
            result = await self.db.execute(
                select(specialties.c.id).where(specialties.c.id == update_values["specialty_id"])
            )
            if result.first() is None:
                raise NotFoundException("Specialty not found")

        update_values["updated_at"] = utcnow()
        await self.db.execute(
            update(professionals)
            .where(professionals.c.id == professional_id)
            .values(**update_values)
        )
        await self.db.commit()

        return await self.get_professional(professional_id)

    async def get_availability(
        self,
        professional_id: int,
        day: date,
        now: datetime | None = None,
    ) -> AvailabilityResponse:
        """
        Free slots of a professional on a clinic calendar day.

        Slots start at ``start_time`` and step by the configured slot duration
        while they end no later than ``end_time``. Days outside the working days
        have no slots. Any existing appointment occupies its slot, canceled ones
        included, matching the booking conflict check. Past slots are dropped.

        Args:
            professional_id: Professional ID
            day: Calendar day in the clinic timezone
            now: Reference time, defaults to the current time

        Returns:
            Available start times as HH:MM strings
        """
        professional = await self.get_professional(professional_id)
        response = AvailabilityResponse(professional_id=professional_id, day=day.isoformat())

        if Weekday.from_index(day.weekday()) not in professional.working_days:
            return response

        reference = ensure_utc(now) if now else utcnow()
        tz = clinic_tz()
        start_bound, end_bound = day_bounds(day)

        result = await self.db.execute(
            select(appointments.c.scheduled_at).where(
                and_(
                    appointments.c.professional_id == professional_id,
                    appointments.c.scheduled_at >= start_bound,
                    appointments.c.scheduled_at <= end_bound,
                )
            )
        )
        taken = {ensure_utc(value) for value in result.scalars().all()}

        step = timedelta(minutes=settings.slot_duration_minutes)
        slot = datetime.combine(day, time.fromisoformat(professional.start_time), tzinfo=tz)
        window_end = datetime.combine(day, time.fromisoformat(professional.end_time), tzinfo=tz)

        while slot + step <= window_end:
            slot_utc = slot.astimezone(UTC)
            if slot_utc > reference and slot_utc not in taken:
                response.slots.append(slot.strftime("%H:%M"))
            slot += step

        return response
