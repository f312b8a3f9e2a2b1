"""Fixed-offset (IST) calendar windows for room rollups.

Room analytics always use India Standard Time, whatever the caller's locale.
Local boundaries are computed on the shifted clock and shifted back, so every
returned datetime is an aware UTC instant suitable for comparing against
stored UTC timestamps.
"""

import calendar
from datetime import UTC, datetime, timedelta

from ..exceptions import ValidationError
from ..models import TimeWindow

# Asia/Kolkata: UTC+5:30
IST_OFFSET = timedelta(minutes=330)

ONE_MS = timedelta(milliseconds=1)


def _local_now(now: datetime | None) -> datetime:
    """Wall-clock IST time, expressed as a naive datetime."""
    now = now or datetime.now(UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return (now.astimezone(UTC) + IST_OFFSET).replace(tzinfo=None)


def _to_utc(local_midnight: datetime) -> datetime:
    return (local_midnight - IST_OFFSET).replace(tzinfo=UTC)


def start_of_day(now: datetime | None = None) -> datetime:
    """Today's IST midnight as a UTC instant."""
    local = _local_now(now)
    return _to_utc(datetime(local.year, local.month, local.day))


def start_of_week(now: datetime | None = None) -> datetime:
    """This week's Monday IST midnight as a UTC instant."""
    local = _local_now(now)
    # weekday(): Monday == 0 ... Sunday == 6, so Sunday goes back six days
    monday = datetime(local.year, local.month, local.day) - timedelta(
        days=local.weekday()
    )
    return _to_utc(monday)


def start_of_month(now: datetime | None = None) -> datetime:
    """The 1st of this IST month at midnight, as a UTC instant."""
    local = _local_now(now)
    return _to_utc(datetime(local.year, local.month, 1))


def day_window(now: datetime | None = None) -> TimeWindow:
    start = start_of_day(now)
    return TimeWindow(start=start, end=start + timedelta(days=1) - ONE_MS)


def week_window(now: datetime | None = None) -> TimeWindow:
    start = start_of_week(now)
    return TimeWindow(start=start, end=start + timedelta(days=7) - ONE_MS)


def month_window(now: datetime | None = None) -> TimeWindow:
    start = start_of_month(now)
    local_start = start + IST_OFFSET
    days = calendar.monthrange(local_start.year, local_start.month)[1]
    return TimeWindow(start=start, end=start + timedelta(days=days) - ONE_MS)


def parse_local_date(value: str, field: str = "date") -> datetime:
    """
    Interpret a date string as the start of that IST calendar day.

    Args:
        value: ``YYYY-MM-DD`` or a full ISO-8601 datetime
        field: Field name reported on validation failure

    Returns:
        Aware UTC datetime

    Raises:
        ValidationError: If the string is neither format
    """
    text = value.strip()
    parts = text.split("-")
    try:
        if len(parts) == 3 and len(text) == 10:
            year, month, day = (int(p) for p in parts)
            return _to_utc(datetime(year, month, day))
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise ValidationError(field, f"Invalid date: {value!r}") from e

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def end_of_local_date(value: str, field: str = "end_date") -> datetime:
    """
    Interpret a date string as the last millisecond of that IST calendar day.

    Full ISO datetimes are returned as given (converted to UTC).
    """
    text = value.strip()
    start = parse_local_date(text, field)
    if len(text) == 10 and text.count("-") == 2:
        return start + timedelta(days=1) - ONE_MS
    return start
