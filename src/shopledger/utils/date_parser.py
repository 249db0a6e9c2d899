"""Date parsing and day-boundary utilities."""

from datetime import date, datetime, time, timedelta, tzinfo, UTC
from typing import Optional

from dateutil import parser as date_parser
from dateutil import tz


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def resolve_timezone(name: str) -> tzinfo:
    """Resolve an IANA timezone name.

    Raises:
        ValueError: If the name is not a known timezone
    """
    zone = tz.gettz(name) if name else None
    if zone is None:
        raise ValueError(f"Unknown timezone '{name}'")
    return zone


def local_today(timezone: str, now: datetime | None = None) -> date:
    """Return the calendar date in a timezone at the given instant."""
    now = now or utc_now()
    return now.astimezone(resolve_timezone(timezone)).date()


def local_day_bounds(day: date, timezone: str) -> tuple[datetime, datetime]:
    """Return the UTC instants of local midnight and the next local midnight.

    The window is half-open: an instant belongs to ``day`` when
    ``start <= instant < end``. DST transitions produce 23 or 25 hour days.
    Where a DST jump skips midnight, the day starts at the first local time
    that exists.
    """
    zone = resolve_timezone(timezone)

    def first_instant(local_day: date) -> datetime:
        midnight = datetime.combine(local_day, time.min).replace(tzinfo=zone)
        return tz.resolve_imaginary(midnight).astimezone(UTC)

    return first_instant(day), first_instant(day + timedelta(days=1))


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "January 15, 2024") and the
    relative dates "today", "yesterday" and "tomorrow".

    Args:
        date_str: Date string in various formats
        today: Date the relative names count from (defaults to the host's
            local date; pass local_today(...) for a shop's calendar)

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = today or date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")
