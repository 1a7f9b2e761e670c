"""Appointment and status history tables using SQLAlchemy Core."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    func,
)

from app.models.base import metadata

# Appointments table
appointments = Table(
    "appointments",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    # Ownership / references
    Column(
        "patient_id",
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "professional_id",
        Integer,
        ForeignKey("professionals.id", ondelete="CASCADE"),
        nullable=False,
    ),
    # Appointment details
    Column("scheduled_at", DateTime(timezone=True), nullable=False),
    Column(
        "status",
        String(20),
        nullable=False,
        server_default="scheduled",
    ),
    Column("notes", Text, nullable=True),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    # Constraints
    CheckConstraint(
        "status IN ('scheduled', 'confirmed', 'canceled', 'finished')",
        name="appointments_status_check",
    ),
    # Slot lookups; not unique, so concurrent bookings of one slot are not blocked here
    Index("idx_appointments_professional_slot", "professional_id", "scheduled_at"),
    Index("idx_appointments_patient_id", "patient_id"),
)

# Append-only audit trail, one row per actual status change
status_history = Table(
    "status_history",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "appointment_id",
        Integer,
        ForeignKey("appointments.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("status", String(20), nullable=False),
    Column("changed_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Index("idx_status_history_appointment", "appointment_id"),
)
