"""
Calendar-day helpers for alert rules.

All rule arithmetic is done on calendar dates. Timestamps coming from the
document store may be date-only strings, naive datetimes or offset-aware
datetimes; aware values are moved into the alerts time zone before the date
is taken so that "days since" matches what the advisor sees on a calendar.
"""

from datetime import date, datetime, tzinfo
from typing import Optional, Union

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

DateLike = Union[str, date, datetime, None]


def safe_parse_datetime(value: DateLike) -> Optional[datetime]:
    """Parse an ISO-8601 value, returning None for anything unusable."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None
    try:
        return isoparse(value.strip())
    except (ValueError, OverflowError):
        return None


def to_calendar_date(value: DateLike, tz: Optional[tzinfo] = None) -> Optional[date]:
    """Reduce a date-like value to the calendar date it falls on."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    parsed = safe_parse_datetime(value)
    if parsed is None:
        return None
    if tz is not None and parsed.tzinfo is not None:
        parsed = parsed.astimezone(tz)
    return parsed.date()


def days_between(start: date, end: date) -> int:
    """Whole calendar days from start to end (negative if end is earlier)."""
    return (end - start).days


def add_months(value: date, months: int) -> date:
    """Add months, clamping to the last day of the target month."""
    return value + relativedelta(months=months)


def format_long_date(value: Optional[date]) -> str:
    """Spanish long date, e.g. '5 de marzo de 2025'."""
    if value is None:
        return "Sin fecha"
    return f"{value.day} de {MONTH_NAMES[value.month - 1]} de {value.year}"


def format_short_date(value: date) -> str:
    """DD/MM/YYYY."""
    return value.strftime("%d/%m/%Y")


MONTH_NAMES = [
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
]
