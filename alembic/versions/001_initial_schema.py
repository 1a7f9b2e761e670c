"""Create scheduling schema

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
    ]


def upgrade() -> None:
    """Create users, professionals, appointments and notification tables."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'patient'")),
        sa.Column("phone", sa.String(20), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "role IN ('patient', 'professional', 'receptionist')",
            name="users_role_check",
        ),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "specialties",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False, unique=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
    )

    op.create_table(
        "professionals",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "specialty_id",
            sa.Integer(),
            sa.ForeignKey("specialties.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("working_days", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("start_time", sa.String(5), nullable=False, server_default=sa.text("'08:00'")),
        sa.Column("end_time", sa.String(5), nullable=False, server_default=sa.text("'18:00'")),
        sa.Column("biography", sa.Text(), nullable=True),
        sa.Column("education", sa.Text(), nullable=True),
        sa.Column("photo_url", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_professionals_user_id", "professionals", ["user_id"], unique=True)
    op.create_index("ix_professionals_specialty_id", "professionals", ["specialty_id"])

    op.create_table(
        "appointments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "patient_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "professional_id",
            sa.Integer(),
            sa.ForeignKey("professionals.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("scheduled_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column(
            "status", sa.String(20), nullable=False, server_default=sa.text("'scheduled'")
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('scheduled', 'confirmed', 'canceled', 'finished')",
            name="appointments_status_check",
        ),
    )
    # Not unique: the booking conflict check is the only guard
    op.create_index(
        "idx_appointments_professional_slot",
        "appointments",
        ["professional_id", "scheduled_at"],
    )
    op.create_index("idx_appointments_patient_id", "appointments", ["patient_id"])

    op.create_table(
        "status_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "appointment_id",
            sa.Integer(),
            sa.ForeignKey("appointments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column(
            "changed_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
    )
    op.create_index("idx_status_history_appointment", "status_history", ["appointment_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("channel", sa.String(20), nullable=False, server_default=sa.text("'whatsapp'")),
        sa.Column(
            "recipient_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("recipient_role", sa.String(20), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("meta", sa.JSON(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'created'")),
        sa.Column("error_detail", sa.Text(), nullable=True),
        sa.Column("gateway_message_id", sa.Text(), nullable=True),
        sa.Column(
            "appointment_id",
            sa.Integer(),
            sa.ForeignKey("appointments.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
        sa.CheckConstraint(
            "type IN ('reminder', 'cancellation', 'edit', 'post_visit', 'presence_confirmation')",
            name="notifications_type_check",
        ),
        sa.CheckConstraint("channel IN ('whatsapp')", name="notifications_channel_check"),
        sa.CheckConstraint(
            "status IN ('created', 'sent', 'failed')",
            name="notifications_status_check",
        ),
    )
    op.create_index("idx_notifications_recipient", "notifications", ["recipient_id"])
    op.create_index(
        "idx_notifications_appointment_type",
        "notifications",
        ["appointment_id", "type", "status"],
    )


def downgrade() -> None:
    """Drop the scheduling schema."""
    op.drop_index("idx_notifications_appointment_type", table_name="notifications")
    op.drop_index("idx_notifications_recipient", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("idx_status_history_appointment", table_name="status_history")
    op.drop_table("status_history")
    op.drop_index("idx_appointments_patient_id", table_name="appointments")
    op.drop_index("idx_appointments_professional_slot", table_name="appointments")
    op.drop_table("appointments")
    op.drop_index("ix_professionals_specialty_id", table_name="professionals")
    op.drop_index("ix_professionals_user_id", table_name="professionals")
    op.drop_table("professionals")
    op.drop_table("specialties")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
