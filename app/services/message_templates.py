"""WhatsApp message templates for appointment notifications."""

from app.core.timeutils import format_local
from app.schemas.notifications import (
    AgendaUpdatedDetails,
    BookingCreatedDetails,
    CanceledDetails,
    NewBookingDetails,
    NotificationEvent,
    PostVisitDetails,
    PresenceConfirmationDetails,
    ReminderDetails,
    RescheduledDetails,
)

DEFAULT_MESSAGE = "Notification from the clinic scheduling system."


def render_details(details) -> str:
    """Render the template that belongs to a details variant."""
    match details:
        case BookingCreatedDetails():
            return (
                "*Appointment Booked*\n\n"
                "Your appointment was booked successfully!\n\n"
                f"*Date/Time:* {format_local(details.scheduled_at)}\n"
                f"*Professional:* {details.professional_name}\n\n"
                "Please arrive on time."
            )
        case NewBookingDetails():
            return (
                "*New Appointment*\n\n"
                "You have a new appointment:\n\n"
                f"*Date/Time:* {format_local(details.scheduled_at)}\n"
                f"*Patient:* {details.patient_name}\n\n"
                "Get ready for the visit."
            )
        case RescheduledDetails():
            return (
                "*Appointment Updated*\n\n"
                "Your appointment was changed:\n\n"
                f"*Previous Date:* {format_local(details.previous_at)}\n"
                f"*New Date:* {format_local(details.new_at)}\n\n"
                "Please confirm your presence on the new date."
            )
        case AgendaUpdatedDetails():
            return (
                "*Agenda Updated*\n\n"
                "An appointment in your agenda was changed:\n\n"
                f"*Patient:* {details.patient_name}\n"
                f"*Previous Date:* {format_local(details.previous_at)}\n"
                f"*New Date:* {format_local(details.new_at)}"
            )
        case CanceledDetails():
            return (
                "*Appointment Canceled*\n\n"
                f"The appointment on {format_local(details.scheduled_at)} was canceled.\n\n"
                "If you need to reschedule, please contact us."
            )
        case ReminderDetails():
            return (
                "*Appointment Reminder*\n\n"
                "You have an appointment soon:\n\n"
                f"*Date/Time:* {format_local(details.scheduled_at)}\n"
                f"*Professional:* {details.professional_name}\n\n"
                "Don't forget to attend!"
            )
        case PresenceConfirmationDetails():
            return (
                "*Appointment Confirmed*\n\n"
                "Your appointment was confirmed:\n\n"
                f"*Date/Time:* {format_local(details.scheduled_at)}\n"
                f"*Professional:* {details.professional_name}\n\n"
                "We look forward to seeing you!"
            )
        case PostVisitDetails():
            notes = (
                f"*Notes from the professional:*\n{details.notes}\n\n" if details.notes else ""
            )
            return (
                "*Visit Finished*\n\n"
                f"Your visit with {details.professional_name} is finished.\n\n"
                f"{notes}"
                "Please rate your visit in our system."
            )
    return DEFAULT_MESSAGE


def render_message(event: NotificationEvent) -> str:
    """Explicit non-blank content wins; otherwise the details template is used."""
    if event.content and event.content.strip():
        return event.content
    return render_details(event.details)
