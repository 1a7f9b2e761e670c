"""Notification log endpoints."""

from fastapi import APIRouter, Query, status

from app.dependencies import CurrentUser, NotificationServiceDep
from app.schemas.notifications import NotificationResponse
from app.schemas.users import UserRole

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get(
    "/",
    response_model=list[NotificationResponse],
    status_code=status.HTTP_200_OK,
    summary="List notification log",
)
async def list_notifications(
    current_user: CurrentUser,
    service: NotificationServiceDep,
    appointment_id: int | None = Query(None, description="Filter by appointment"),
) -> list[NotificationResponse]:
    """
    List notifications, newest first.

    Receptionists see every notification; other users only the ones sent to
    them.

    Args:
        current_user: Authenticated user
        service: Notification service
        appointment_id: Optional appointment filter

    Returns:
        Notification log entries
    """
    recipient_id = None
    if current_user["role"] != UserRole.RECEPTIONIST.value:
        recipient_id = current_user["id"]

    records = await service.list_notifications(
        recipient_id=recipient_id,
        appointment_id=appointment_id,
    )
    return [NotificationResponse.model_validate(record) for record in records]
