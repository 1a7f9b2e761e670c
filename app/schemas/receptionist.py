"""Receptionist-specific schemas."""

from pydantic import BaseModel, ConfigDict, Field


class DashboardSummaryResponse(BaseModel):
    """Counters shown on the receptionist dashboard."""

    total_users: int = Field(..., description="All registered users")
    total_patients: int
    total_professionals: int
    appointments_today: int = Field(..., description="Appointments on the current clinic day")
    canceled_this_month: int = Field(
        ..., description="Canceled appointments scheduled in the current month"
    )

    model_config = ConfigDict(from_attributes=True)
