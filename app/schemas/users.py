"""User schemas for request/response validation."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.schemas.professionals import ProfessionalProfileFields, ProfessionalResponse


class UserRole(str, Enum):
    """User role enumeration."""

    PATIENT = "patient"
    PROFESSIONAL = "professional"
    RECEPTIONIST = "receptionist"


class UserBase(BaseModel):
    """Base user schema with common fields."""

    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone: str | None = Field(None, max_length=20)


class UserCreate(UserBase, ProfessionalProfileFields):
    """Schema for creating a user; professional fields apply to role professional."""

    password: str = Field(..., min_length=6, max_length=72)
    role: UserRole = UserRole.PATIENT
    specialty_id: int | None = None


class UserUpdate(BaseModel):
    """Schema for updating a user."""

    name: str | None = Field(None, min_length=1, max_length=200)
    email: EmailStr | None = None
    role: UserRole | None = None
    phone: str | None = Field(None, max_length=20)
    specialty_id: int | None = Field(None, description="Required when promoting to professional")


class UserResponse(UserBase):
    """User schema for API responses."""

    id: int
    role: UserRole
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserWithProfileResponse(UserResponse):
    """User together with the professional profile, when there is one."""

    professional: ProfessionalResponse | None = None


class UserSummary(BaseModel):
    """Compact user view embedded in appointment responses."""

    id: int
    name: str
    email: EmailStr
    phone: str | None = None
    role: UserRole

    model_config = ConfigDict(from_attributes=True)
