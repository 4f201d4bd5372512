"""ISO week and calendar helpers."""

from datetime import date, datetime, timedelta, timezone


def as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def iso_week(value: date | datetime) -> tuple[int, int]:
    """(ISO year, ISO week number) per ISO 8601, Monday-based."""
    iso = as_date(value).isocalendar()
    return iso[0], iso[1]


def week_bounds(year: int, week: int) -> tuple[date, date]:
    """Monday and Sunday of an ISO week."""
    monday = date.fromisocalendar(year, week, 1)
    return monday, monday + timedelta(days=6)


def week_start(value: date | datetime) -> date:
    d = as_date(value)
    return d - timedelta(days=d.weekday())


def month_key(value: date | datetime) -> str:
    return as_date(value).strftime("%Y-%m")


def to_naive(value: date | datetime) -> datetime:
    """Exit timestamps are kept as naive UTC wall-clock datetimes; plain dates become midnight."""
    if not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
