"""User service for business logic."""

from typing import Any

import structlog
from sqlalchemy import delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestException, ConflictException, NotFoundException
from app.core.security import get_password_hash, verify_password
from app.core.timeutils import utcnow
from app.models.appointments import appointments, status_history
from app.models.professionals import professionals, specialties
from app.models.users import users
from app.schemas.users import UserCreate, UserRole, UserUpdate
from app.services.professional_service import ProfessionalService

logger = structlog.get_logger(__name__)

# Returned to callers; the password hash never leaves the service
PUBLIC_COLUMNS = [
    users.c.id,
    users.c.name,
    users.c.email,
    users.c.role,
    users.c.phone,
    users.c.created_at,
    users.c.updated_at,
]


class UserService:
    """Service for user operations."""

    async def list_users(self, db: AsyncSession) -> list[dict[str, Any]]:
        """List users ordered by ID, with their professional profile."""
        result = await db.execute(select(*PUBLIC_COLUMNS).order_by(users.c.id.asc()))
        user_list = [dict(row) for row in result.mappings().all()]

        profiles = await ProfessionalService(db).list_professionals()
        by_user = {profile.user_id: profile for profile in profiles}
        for user in user_list:
            user["professional"] = by_user.get(user["id"])
        return user_list

    async def get_user_by_id(self, db: AsyncSession, user_id: int) -> dict | None:
        """Get user by ID."""
        result = await db.execute(select(*PUBLIC_COLUMNS).where(users.c.id == user_id))
        user = result.mappings().first()
        return dict(user) if user else None

    async def get_user_by_email(self, db: AsyncSession, email: str) -> dict | None:
        """Get user by email."""
        result = await db.execute(select(*PUBLIC_COLUMNS).where(users.c.email == email))
        user = result.mappings().first()
        return dict(user) if user else None

    async def authenticate(self, db: AsyncSession, email: str, password: str) -> dict | None:
        """Return the user when the email and password match, otherwise None."""
        result = await db.execute(select(users).where(users.c.email == email))
        user = result.mappings().first()
        if not user or not verify_password(password, user["password_hash"]):
            return None
        return {key: value for key, value in user.items() if key != "password_hash"}

    async def _check_specialty(self, db: AsyncSession, specialty_id: int | None) -> None:
        if specialty_id is None:
            raise BadRequestException("specialty_id is required for professionals")
        found = await db.execute(select(specialties.c.id).where(specialties.c.id == specialty_id))
        if found.first() is None:
            raise BadRequestException("Specialty not found")

    async def create_user(self, db: AsyncSession, user_data: UserCreate) -> dict:
        """
        Create a user; professionals get their profile in the same transaction.

        Raises:
            ConflictException: If the email is already registered
            BadRequestException: If a professional has no valid specialty
        """
        if await self.get_user_by_email(db, user_data.email):
            raise ConflictException("Email already registered")

        is_professional = user_data.role == UserRole.PROFESSIONAL
        if is_professional:
            await self._check_specialty(db, user_data.specialty_id)

        result = await db.execute(
            insert(users).values(
                name=user_data.name,
                email=user_data.email,
                password_hash=get_password_hash(user_data.password),
                role=user_data.role.value,
                phone=user_data.phone,
            )
        )
        user_id = result.inserted_primary_key[0]

        if is_professional:
            profile = {
                "user_id": user_id,
                "specialty_id": user_data.specialty_id,
                "working_days": [day.value for day in user_data.working_days or []],
                "biography": user_data.biography,
                "education": user_data.education,
                "photo_url": user_data.photo_url,
            }
            if user_data.start_time:
                profile["start_time"] = user_data.start_time
            if user_data.end_time:
                profile["end_time"] = user_data.end_time
            await db.execute(insert(professionals).values(**profile))

        await db.commit()
        logger.info("user_created", user_id=user_id, role=user_data.role.value)

        user = await self.get_user_by_id(db, user_id)
        user["professional"] = (
            await ProfessionalService(db).get_professional_by_user(user_id)
            if is_professional
            else None
        )
        return user

    async def update_user(self, db: AsyncSession, user_id: int, user_data: UserUpdate) -> dict:
        """
        Update name, email, role or phone of a user.

        Promoting a user to professional creates their profile, which needs a
        ``specialty_id``. Demoting a professional removes the profile, provided
        no appointment references it.

        Raises:
            NotFoundException: If user not found
            ConflictException: If the new email belongs to another user, or the
                demoted professional still has appointments
            BadRequestException: If a promoted user has no valid specialty
        """
        current = await self.get_user_by_id(db, user_id)
        if not current:
            raise NotFoundException("User not found")

        update_data = {
            field: value
            for field, value in user_data.model_dump(exclude_unset=True, mode="json").items()
            if value is not None
        }
        specialty_id = update_data.pop("specialty_id", None)
        if not update_data:
            return current

        if "email" in update_data and update_data["email"] != current["email"]:
            other = await self.get_user_by_email(db, update_data["email"])
            if other and other["id"] != user_id:
                raise ConflictException("Email already registered")

        old_role = current["role"]
        new_role = update_data.get("role", old_role)
        promoted = new_role == UserRole.PROFESSIONAL and old_role != UserRole.PROFESSIONAL
        demoted = old_role == UserRole.PROFESSIONAL and new_role != UserRole.PROFESSIONAL

        if promoted:
            await self._check_specialty(db, specialty_id)
        if demoted:
            await self._ensure_profile_unused(db, user_id)

        update_data["updated_at"] = utcnow()
        await db.execute(update(users).where(users.c.id == user_id).values(**update_data))
        if promoted:
            await db.execute(
                insert(professionals).values(
                    user_id=user_id, specialty_id=specialty_id, working_days=[]
                )
            )
        if demoted:
            await db.execute(delete(professionals).where(professionals.c.user_id == user_id))
        await db.commit()

        if promoted or demoted:
            logger.info("user_role_changed", user_id=user_id, old=old_role, new=new_role)
        return await self.get_user_by_id(db, user_id)

    async def _ensure_profile_unused(self, db: AsyncSession, user_id: int) -> None:
        result = await db.execute(
            select(appointments.c.id)
            .join(professionals, professionals.c.id == appointments.c.professional_id)
            .where(professionals.c.user_id == user_id)
            .limit(1)
        )
        if result.first() is not None:
            raise ConflictException(
                "Professional has appointments; delete or reassign them before changing the role"
            )

    async def delete_user(self, db: AsyncSession, user_id: int) -> None:
        """
        Delete a user together with their professional profile and appointments.

        Raises:
            NotFoundException: If user not found
        """
        if not await self.get_user_by_id(db, user_id):
            raise NotFoundException("User not found")

        professional_ids = select(professionals.c.id).where(professionals.c.user_id == user_id)
        appointment_ids = select(appointments.c.id).where(
            (appointments.c.patient_id == user_id)
            | (appointments.c.professional_id.in_(professional_ids))
        )

        await db.execute(
            delete(status_history).where(status_history.c.appointment_id.in_(appointment_ids))
        )
        await db.execute(delete(appointments).where(appointments.c.id.in_(appointment_ids)))
        await db.execute(delete(professionals).where(professionals.c.user_id == user_id))
        await db.execute(delete(users).where(users.c.id == user_id))
        await db.commit()

        logger.info("user_deleted", user_id=user_id)
