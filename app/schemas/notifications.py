"""WhatsApp notification schemas.

Each notification carries a ``details`` payload. The payload is a tagged union
keyed by ``kind``: every variant holds exactly the fields its message template
needs and fixes the notification type stored on the log row.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field


class NotificationType(str, Enum):
    """Notification type enumeration."""

    REMINDER = "reminder"
    CANCELLATION = "cancellation"
    EDIT = "edit"
    POST_VISIT = "post_visit"
    PRESENCE_CONFIRMATION = "presence_confirmation"


class NotificationChannel(str, Enum):
    """Delivery channel; WhatsApp is the only one."""

    WHATSAPP = "whatsapp"


class NotificationStatus(str, Enum):
    """Delivery status of a notification."""

    CREATED = "created"
    SENT = "sent"
    FAILED = "failed"


# ============================================================================
# Template details (tagged union)
# ============================================================================


class BookingCreatedDetails(BaseModel):
    """Patient-facing notice that a booking was made."""

    notification_type: ClassVar[NotificationType] = NotificationType.EDIT

    kind: Literal["booking_created"] = "booking_created"
    scheduled_at: datetime
    professional_name: str


class NewBookingDetails(BaseModel):
    """Professional-facing notice of a new booking in their agenda."""

    notification_type: ClassVar[NotificationType] = NotificationType.EDIT

    kind: Literal["new_booking"] = "new_booking"
    scheduled_at: datetime
    patient_name: str


class RescheduledDetails(BaseModel):
    """Appointment moved to a new date/time."""

    notification_type: ClassVar[NotificationType] = NotificationType.EDIT

    kind: Literal["rescheduled"] = "rescheduled"
    previous_at: datetime
    new_at: datetime


class AgendaUpdatedDetails(BaseModel):
    """Professional-facing notice that an appointment in their agenda moved."""

    notification_type: ClassVar[NotificationType] = NotificationType.EDIT

    kind: Literal["agenda_updated"] = "agenda_updated"
    previous_at: datetime
    new_at: datetime
    patient_name: str


class CanceledDetails(BaseModel):
    """Appointment canceled."""

    notification_type: ClassVar[NotificationType] = NotificationType.CANCELLATION

    kind: Literal["canceled"] = "canceled"
    scheduled_at: datetime


class ReminderDetails(BaseModel):
    """Upcoming appointment reminder."""

    notification_type: ClassVar[NotificationType] = NotificationType.REMINDER

    kind: Literal["reminder"] = "reminder"
    scheduled_at: datetime
    professional_name: str


class PresenceConfirmationDetails(BaseModel):
    """Professional confirmed the appointment."""

    notification_type: ClassVar[NotificationType] = NotificationType.PRESENCE_CONFIRMATION

    kind: Literal["presence_confirmation"] = "presence_confirmation"
    scheduled_at: datetime
    professional_name: str


class PostVisitDetails(BaseModel):
    """Appointment finished; optional notes from the professional."""

    notification_type: ClassVar[NotificationType] = NotificationType.POST_VISIT

    kind: Literal["post_visit"] = "post_visit"
    professional_name: str
    notes: str | None = None


NotificationDetails = Annotated[
    BookingCreatedDetails
    | NewBookingDetails
    | RescheduledDetails
    | AgendaUpdatedDetails
    | CanceledDetails
    | ReminderDetails
    | PresenceConfirmationDetails
    | PostVisitDetails,
    Field(discriminator="kind"),
]


# ============================================================================
# Dispatch input and responses
# ============================================================================


class Recipient(BaseModel):
    """User a notification is addressed to."""

    user_id: int
    role: str
    name: str
    phone: str | None = None


class NotificationEvent(BaseModel):
    """A business event to be turned into a WhatsApp message."""

    recipient: Recipient
    details: NotificationDetails
    content: str | None = Field(
        None, description="Explicit message text; the details template is used when blank"
    )
    appointment_id: int | None = None

    @property
    def notification_type(self) -> NotificationType:
        """Type recorded on the notification row."""
        return self.details.notification_type


class NotificationResponse(BaseModel):
    """Notification log entry."""

    id: int
    type: NotificationType
    channel: NotificationChannel
    recipient_id: int
    recipient_role: str
    content: str
    meta: dict | None = None
    status: NotificationStatus
    error_detail: str | None = None
    gateway_message_id: str | None = None
    appointment_id: int | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
