"""Notification log for WhatsApp messages and their delivery status."""

from sqlalchemy import (
    JSON,
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

notifications = Table(
    "notifications",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("type", String(30), nullable=False),
    Column("channel", String(20), nullable=False, server_default="whatsapp"),
    Column(
        "recipient_id",
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("recipient_role", String(20), nullable=False),
    Column("content", Text, nullable=False),
    Column("meta", JSON, nullable=True),
    Column("status", String(20), nullable=False, server_default="created"),
    Column("error_detail", Text, nullable=True),
    Column("gateway_message_id", Text, nullable=True),
    Column(
        "appointment_id",
        Integer,
        ForeignKey("appointments.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(
        "type IN ('reminder', 'cancellation', 'edit', 'post_visit', 'presence_confirmation')",
        name="notifications_type_check",
    ),
    CheckConstraint("channel IN ('whatsapp')", name="notifications_channel_check"),
    CheckConstraint(
        "status IN ('created', 'sent', 'failed')",
        name="notifications_status_check",
    ),
    Index("idx_notifications_recipient", "recipient_id"),
    Index("idx_notifications_appointment_type", "appointment_id", "type", "status"),
)
