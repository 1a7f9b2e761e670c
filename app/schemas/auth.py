"""Authentication schemas."""

from typing import Literal

from pydantic import BaseModel, EmailStr, Field

from app.schemas.users import UserResponse, UserRole


class LoginRequest(BaseModel):
    """Email and password login request."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """Login response with access token and user info."""

    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class TokenPayload(BaseModel):
    """Claims carried by an access token."""

    sub: int = Field(..., description="User ID")
    role: UserRole
    type: Literal["access"] = "access"
