"""Professional and specialty schemas for request/response validation."""

from datetime import datetime, time
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# ============================================================================
# Specialty Schemas
# ============================================================================


class SpecialtyCreate(BaseModel):
    """Schema for creating a specialty."""

    name: str = Field(..., max_length=120)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Trim surrounding whitespace; blank names are rejected by the service."""
        return v.strip()


class SpecialtyResponse(BaseModel):
    """Specialty response schema."""

    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# Professional Schemas
# ============================================================================


class Weekday(str, Enum):
    """Working day tags, in ``datetime.weekday()`` order."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_index(cls, index: int) -> "Weekday":
        """Tag for a ``date.weekday()`` index."""
        return list(cls)[index]


def _validate_hhmm(value: str | None) -> str | None:
    if value is None:
        return value
    try:
        time.fromisoformat(value)
    except ValueError as e:
        raise ValueError("Time must use the HH:MM format") from e
    if len(value) != 5:
        raise ValueError("Time must use the HH:MM format")
    return value


class ProfessionalProfileFields(BaseModel):
    """Editable profile fields shared by creation and update payloads."""

    working_days: list[Weekday] | None = None
    start_time: str | None = Field(None, description="Start of the working window, HH:MM")
    end_time: str | None = Field(None, description="End of the working window, HH:MM")
    biography: str | None = None
    education: str | None = None
    photo_url: str | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v: str | None) -> str | None:
        """Validate HH:MM time strings."""
        return _validate_hhmm(v)

    @model_validator(mode="after")
    def validate_window(self) -> "ProfessionalProfileFields":
        """End of the working window must come after its start."""
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ProfessionalUpdate(ProfessionalProfileFields):
    """Schema for updating a professional profile."""

    specialty_id: int | None = None


class ProfessionalResponse(BaseModel):
    """Professional response schema, joined with user and specialty."""

    id: int
    user_id: int
    name: str | None = None
    email: str | None = None
    specialty: SpecialtyResponse | None = None
    working_days: list[Weekday] = Field(default_factory=list)
    start_time: str
    end_time: str
    biography: str | None = None
    education: str | None = None
    photo_url: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AvailabilityResponse(BaseModel):
    """Free slots of a professional on one day."""

    professional_id: int
    day: str
    slots: list[str] = Field(default_factory=list, description="Free start times, HH:MM")
