"""Professional and specialty models using SQLAlchemy Core."""

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    func,
)

from app.models.base import metadata

specialties = Table(
    "specialties",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(120), nullable=False, unique=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)

professionals = Table(
    "professionals",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "user_id",
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    ),
    Column(
        "specialty_id",
        Integer,
        ForeignKey("specialties.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    ),
    # Availability: weekday tags ("monday".."sunday") and an HH:MM window
    Column("working_days", JSON, nullable=False, default=list),
    Column("start_time", String(5), nullable=False, server_default="08:00"),
    Column("end_time", String(5), nullable=False, server_default="18:00"),
    # Public profile
    Column("biography", Text),
    Column("education", Text),
    Column("photo_url", Text),
    # Metadata
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
