"""Date manipulation utilities"""

import calendar
from datetime import date, datetime, timezone


def add_months(value: datetime, months: int) -> datetime:
    """Same day N calendar months later, clamped to the end of shorter months"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def days_between(start: date, end: date) -> int:
    """Whole calendar days from start to end (negative when end is earlier)"""
    return (end - start).days


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so mixed values can be compared"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
