"""Appointment schemas for request/response validation."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.professionals import ProfessionalResponse
from app.schemas.users import UserSummary


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    CANCELED = "canceled"
    FINISHED = "finished"


# Statuses accepted by the dedicated status-change endpoint
TRANSITION_STATUSES = frozenset(
    {
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.CANCELED,
        AppointmentStatus.FINISHED,
    }
)


class AppointmentCreate(BaseModel):
    """Schema for creating a new appointment."""

    professional_id: int
    scheduled_at: datetime
    notes: str | None = Field(None, max_length=2000)
    # Only honoured for receptionists; patients always book for themselves
    patient_id: int | None = None


class AppointmentUpdate(BaseModel):
    """Schema for updating an existing appointment."""

    patient_id: int | None = None
    professional_id: int | None = None
    scheduled_at: datetime | None = None
    status: AppointmentStatus | None = None
    notes: str | None = Field(None, max_length=2000)


class AppointmentStatusUpdate(BaseModel):
    """Schema for the dedicated status transition."""

    status: AppointmentStatus


class AppointmentNotesUpdate(BaseModel):
    """Schema for overwriting appointment notes."""

    notes: str = Field(..., max_length=2000)


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: int
    patient_id: int
    professional_id: int
    scheduled_at: datetime
    status: AppointmentStatus
    notes: str | None = None
    created_at: datetime
    updated_at: datetime
    patient: UserSummary | None = None
    professional: ProfessionalResponse | None = None

    model_config = ConfigDict(from_attributes=True)


class StatusHistoryResponse(BaseModel):
    """One status transition of an appointment."""

    id: int
    appointment_id: int
    status: AppointmentStatus
    changed_at: datetime

    model_config = ConfigDict(from_attributes=True)
