"""Specialty service for reference data."""

from typing import Any

import structlog
from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestException, ConflictException, NotFoundException
from app.models.professionals import professionals, specialties

logger = structlog.get_logger(__name__)


class SpecialtyService:
    """Service for managing specialties."""

    @staticmethod
    async def list_specialties(db: AsyncSession) -> list[dict[str, Any]]:
        """List all specialties ordered by name."""
        result = await db.execute(select(specialties).order_by(specialties.c.name.asc()))
        return [dict(row) for row in result.mappings().all()]

    @staticmethod
    async def create_specialty(db: AsyncSession, name: str) -> dict[str, Any]:
        """
        Create a specialty.

        Args:
            db: Database session
            name: Unique specialty name

        Returns:
            Created specialty

        Raises:
            BadRequestException: If the name is blank
            ConflictException: If a specialty with that name exists
        """
        name = name.strip()
        if not name:
            raise BadRequestException("Specialty name is required")

        existing = await db.execute(select(specialties.c.id).where(specialties.c.name == name))
        if existing.first() is not None:
            raise ConflictException("This specialty already exists")

        result = await db.execute(insert(specialties).values(name=name))
        specialty_id = result.inserted_primary_key[0]
        await db.commit()

        logger.info("specialty_created", specialty_id=specialty_id, name=name)
        row = await db.execute(select(specialties).where(specialties.c.id == specialty_id))
        return dict(row.mappings().one())

    @staticmethod
    async def delete_specialty(db: AsyncSession, specialty_id: int) -> None:
        """
        Delete a specialty.

        Raises:
            NotFoundException: If specialty not found
            ConflictException: If professionals still reference it
        """
        existing = await db.execute(
            select(specialties.c.id).where(specialties.c.id == specialty_id)
        )
        if existing.first() is None:
            raise NotFoundException("Specialty not found")

        in_use = await db.execute(
            select(func.count())
            .select_from(professionals)
            .where(professionals.c.specialty_id == specialty_id)
        )
        if in_use.scalar_one() > 0:
            raise ConflictException("Specialty is assigned to professionals")

        await db.execute(delete(specialties).where(specialties.c.id == specialty_id))
        await db.commit()
        logger.info("specialty_deleted", specialty_id=specialty_id)
