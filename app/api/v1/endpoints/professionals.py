"""Professional endpoints."""

from datetime import date

from fastapi import APIRouter, Query, status

from app.core.exceptions import ForbiddenException
from app.dependencies import CurrentUser, DatabaseSession
from app.schemas.professionals import AvailabilityResponse, ProfessionalResponse, ProfessionalUpdate
from app.schemas.users import UserRole
from app.services.professional_service import ProfessionalService

router = APIRouter()


@router.get(
    "/",
    response_model=list[ProfessionalResponse],
    status_code=status.HTTP_200_OK,
    tags=["Professionals"],
    summary="List professionals",
)
async def list_professionals(
    _: CurrentUser,
    db: DatabaseSession,
    specialty_id: int | None = Query(None, description="Filter by specialty"),
) -> list[ProfessionalResponse]:
    """List professionals ordered by name."""
    return await ProfessionalService(db).list_professionals(specialty_id)


@router.get(
    "/{professional_id}",
    response_model=ProfessionalResponse,
    status_code=status.HTTP_200_OK,
    tags=["Professionals"],
    summary="Get professional by ID",
)
async def get_professional(
    professional_id: int,
    _: CurrentUser,
    db: DatabaseSession,
) -> ProfessionalResponse:
    """Get a professional profile with user and specialty details."""
    return await ProfessionalService(db).get_professional(professional_id)


@router.put(
    "/{professional_id}",
    response_model=ProfessionalResponse,
    status_code=status.HTTP_200_OK,
    tags=["Professionals"],
    summary="Update professional profile",
)
async def update_professional(
    professional_id: int,
    data: ProfessionalUpdate,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> ProfessionalResponse:
    """
    Update a professional profile.

    Professionals may edit their own profile; receptionists any profile.

    Args:
        professional_id: Professional ID
        data: Fields to change
        current_user: Authenticated user
        db: Database session

    Returns:
        Updated profile

    Raises:
        ForbiddenException: If the caller may not edit this profile
    """
    service = ProfessionalService(db)
    role = current_user["role"]

    if role == UserRole.PROFESSIONAL.value:
        current = await service.get_professional(professional_id)
        if current.user_id != current_user["id"]:
            raise ForbiddenException("You can only edit your own profile")
    elif role != UserRole.RECEPTIONIST.value:
        raise ForbiddenException("Not enough permissions for this operation")

    return await service.update_professional(professional_id, data)


@router.get(
    "/{professional_id}/availability",
    response_model=AvailabilityResponse,
    status_code=status.HTTP_200_OK,
    tags=["Professionals"],
    summary="Get free slots for a day",
)
async def get_availability(
    professional_id: int,
    _: CurrentUser,
    db: DatabaseSession,
    day: date = Query(..., description="Clinic calendar day, YYYY-MM-DD"),
) -> AvailabilityResponse:
    """
    List free appointment start times of a professional on a day.

    Args:
        professional_id: Professional ID
        day: Calendar day in the clinic timezone
        db: Database session

    Returns:
        Free HH:MM slots
    """
    return await ProfessionalService(db).get_availability(professional_id, day)
