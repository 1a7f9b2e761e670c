"""Timezone helpers for appointment datetimes.

Appointment times are stored in UTC. Some drivers (SQLite) hand them back as
naive values, so every comparison goes through ``ensure_utc`` first. Calendar
notions such as "today" or a day filter are evaluated in the clinic timezone.
"""

from datetime import UTC, date, datetime, time
from zoneinfo import ZoneInfo

from app.config import settings


def clinic_tz() -> ZoneInfo:
    """Timezone the clinic operates in."""
    return ZoneInfo(settings.clinic_timezone)


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Inclusive [00:00:00, 23:59:59] bounds of a clinic calendar day, in UTC."""
    tz = clinic_tz()
    start = datetime.combine(day, time(0, 0, 0), tzinfo=tz)
    end = datetime.combine(day, time(23, 59, 59), tzinfo=tz)
    return start.astimezone(UTC), end.astimezone(UTC)


def month_start(moment: datetime) -> datetime:
    """First instant of the clinic calendar month containing ``moment``, in UTC."""
    local = ensure_utc(moment).astimezone(clinic_tz())
    first = datetime.combine(local.date().replace(day=1), time(0, 0), tzinfo=clinic_tz())
    return first.astimezone(UTC)


def format_local(value: datetime) -> str:
    """Human readable clinic-local date and time used in messages."""
    return ensure_utc(value).astimezone(clinic_tz()).strftime("%d/%m/%Y %H:%M")


def today_local() -> date:
    """Current calendar date in the clinic timezone."""
    return utcnow().astimezone(clinic_tz()).date()


