"""Receptionist-only endpoints for user management and the dashboard."""

from fastapi import APIRouter, status

from app.dependencies import DatabaseSession, Receptionist
from app.schemas.receptionist import DashboardSummaryResponse
from app.schemas.users import UserCreate, UserResponse, UserUpdate, UserWithProfileResponse
from app.services.dashboard_service import DashboardService
from app.services.user_service import UserService

router = APIRouter(prefix="/receptionist", tags=["Receptionist"])

user_service = UserService()


@router.get(
    "/users",
    response_model=list[UserWithProfileResponse],
    summary="List all users (receptionist only)",
)
async def list_users(_: Receptionist, db: DatabaseSession) -> list[UserWithProfileResponse]:
    """
    List every user with their professional profile, when they have one.

    Args:
        db: Database session

    Returns:
        Users ordered by ID
    """
    users = await user_service.list_users(db)
    return [UserWithProfileResponse.model_validate(user) for user in users]


@router.post(
    "/users",
    response_model=UserWithProfileResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create user (receptionist only)",
)
async def create_user(
    data: UserCreate,
    _: Receptionist,
    db: DatabaseSession,
) -> UserWithProfileResponse:
    """
    Register a user of any role.

    Professionals need a ``specialty_id`` and get their profile created with
    the optional working days, hours and biography fields.

    Args:
        data: User data
        db: Database session

    Returns:
        Created user

    Raises:
        ConflictException: If the email is already registered
        BadRequestException: If a professional has no valid specialty
    """
    user = await user_service.create_user(db, data)
    return UserWithProfileResponse.model_validate(user)


@router.put(
    "/users/{user_id}",
    response_model=UserResponse,
    summary="Update user (receptionist only)",
)
async def update_user(
    user_id: int,
    data: UserUpdate,
    _: Receptionist,
    db: DatabaseSession,
) -> UserResponse:
    """Update a user; role changes create or remove the professional profile."""
    user = await user_service.update_user(db, user_id, data)
    return UserResponse.model_validate(user)


@router.delete(
    "/users/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete user (receptionist only)",
)
async def delete_user(user_id: int, _: Receptionist, db: DatabaseSession) -> None:
    """Delete a user with their professional profile and appointments."""
    await user_service.delete_user(db, user_id)


@router.get(
    "/dashboard-summary",
    response_model=DashboardSummaryResponse,
    summary="Get dashboard counters (receptionist only)",
)
async def get_dashboard_summary(_: Receptionist, db: DatabaseSession) -> DashboardSummaryResponse:
    """
    Get the counters shown on the receptionist dashboard.

    Returns:
        Users by role, today's appointments and cancellations this month
    """
    return await DashboardService(db).summary()
