"""Dashboard counters for the receptionist view."""

from datetime import datetime, timedelta

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.timeutils import clinic_tz, day_bounds, ensure_utc, month_start, utcnow
from app.models.appointments import appointments
from app.models.users import users
from app.schemas.appointments import AppointmentStatus
from app.schemas.receptionist import DashboardSummaryResponse
from app.schemas.users import UserRole


class DashboardService:
    """Aggregate counts over users and appointments."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def _count(self, table, *conditions) -> int:
        query = select(func.count()).select_from(table)
        if conditions:
            query = query.where(and_(*conditions))
        result = await self.db.execute(query)
        return result.scalar_one()

    async def summary(self, now: datetime | None = None) -> DashboardSummaryResponse:
        """
        Compute the dashboard summary.

        "Today" and "this month" follow the clinic timezone.

        Args:
            now: Reference time, defaults to the current time

        Returns:
            User and appointment counters
        """
        reference = ensure_utc(now) if now else utcnow()
        today_start, today_end = day_bounds(reference.astimezone(clinic_tz()).date())
        this_month = month_start(reference)
        next_month = month_start(this_month + timedelta(days=32))

        return DashboardSummaryResponse(
            total_users=await self._count(users),
            total_patients=await self._count(users, users.c.role == UserRole.PATIENT.value),
            total_professionals=await self._count(
                users, users.c.role == UserRole.PROFESSIONAL.value
            ),
            appointments_today=await self._count(
                appointments,
                appointments.c.scheduled_at >= today_start,
                appointments.c.scheduled_at <= today_end,
            ),
            canceled_this_month=await self._count(
                appointments,
                appointments.c.status == AppointmentStatus.CANCELED.value,
                appointments.c.scheduled_at >= this_month,
                appointments.c.scheduled_at < next_month,
            ),
        )
