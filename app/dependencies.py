"""FastAPI dependencies."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import decode_access_token
from app.database import get_db
from app.schemas.users import UserRole
from app.services.appointment_service import AppointmentService
from app.services.notification_service import NotificationService
from app.services.user_service import UserService
from app.services.whatsapp_service import WhatsAppClient, get_whatsapp_client

# Security
security = HTTPBearer()


async def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> int:
    """
    Extract and validate user ID from JWT token.

    Args:
        credentials: Bearer token credentials

    Returns:
        User ID from token

    Raises:
        HTTPException: If token is invalid or expired
    """
    payload = decode_access_token(credentials.credentials)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return payload.sub


async def get_current_user(
    user_id: Annotated[int, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    """
    Get current user from database.

    Args:
        user_id: User ID from JWT token
        db: Database session

    Returns:
        User data from database

    Raises:
        HTTPException: If the user no longer exists
    """
    user = await UserService().get_user_by_id(db, user_id)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


def require_roles(*roles: UserRole) -> Callable:
    """
    Build a dependency that only lets the given roles through.

    Args:
        roles: Roles allowed to call the endpoint

    Returns:
        Dependency returning the current user
    """
    allowed = {role.value for role in roles}

    async def checker(current_user: Annotated[dict, Depends(get_current_user)]) -> dict:
        if current_user["role"] not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions for this operation",
            )
        return current_user

    return checker


def get_notification_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    whatsapp: Annotated[WhatsAppClient, Depends(get_whatsapp_client)],
) -> NotificationService:
    """Notification service bound to the request session."""
    return NotificationService(db, whatsapp)


def get_appointment_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    notifier: Annotated[NotificationService, Depends(get_notification_service)],
) -> AppointmentService:
    """Appointment service bound to the request session."""
    return AppointmentService(db, notifier)


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUserId = Annotated[int, Depends(get_current_user_id)]
CurrentUser = Annotated[dict, Depends(get_current_user)]
Patient = Annotated[dict, Depends(require_roles(UserRole.PATIENT))]
Receptionist = Annotated[dict, Depends(require_roles(UserRole.RECEPTIONIST))]
Professional = Annotated[dict, Depends(require_roles(UserRole.PROFESSIONAL))]
Staff = Annotated[dict, Depends(require_roles(UserRole.PROFESSIONAL, UserRole.RECEPTIONIST))]
NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]
AppointmentServiceDep = Annotated[AppointmentService, Depends(get_appointment_service)]
