"""Specialty endpoints."""

from fastapi import APIRouter, status

from app.dependencies import CurrentUser, DatabaseSession, Receptionist
from app.schemas.professionals import SpecialtyCreate, SpecialtyResponse
from app.services.specialty_service import SpecialtyService

router = APIRouter()


@router.get(
    "/",
    response_model=list[SpecialtyResponse],
    status_code=status.HTTP_200_OK,
    tags=["Specialties"],
    summary="List specialties",
)
async def list_specialties(_: CurrentUser, db: DatabaseSession) -> list[SpecialtyResponse]:
    """List all specialties ordered by name."""
    specialties = await SpecialtyService.list_specialties(db)
    return [SpecialtyResponse.model_validate(item) for item in specialties]


@router.post(
    "/",
    response_model=SpecialtyResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Specialties"],
    summary="Create specialty",
)
async def create_specialty(
    data: SpecialtyCreate,
    _: Receptionist,
    db: DatabaseSession,
) -> SpecialtyResponse:
    """
    Create a specialty.

    Args:
        data: Specialty name
        db: Database session

    Returns:
        Created specialty

    Raises:
        ConflictException: If the name is already taken
    """
    specialty = await SpecialtyService.create_specialty(db, data.name)
    return SpecialtyResponse.model_validate(specialty)


@router.delete(
    "/{specialty_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Specialties"],
    summary="Delete specialty",
)
async def delete_specialty(specialty_id: int, _: Receptionist, db: DatabaseSession) -> None:
    """Delete a specialty that no professional uses."""
    await SpecialtyService.delete_specialty(db, specialty_id)
