"""Database models."""

from app.models.appointments import appointments, status_history
from app.models.base import metadata
from app.models.notifications import notifications
from app.models.professionals import professionals, specialties
from app.models.users import users

__all__ = [
    "appointments",
    "metadata",
    "notifications",
    "professionals",
    "specialties",
    "status_history",
    "users",
]
