"""Date manipulation utilities"""

import calendar
from datetime import date, datetime, time, timedelta


def add_months(from_date: date, months: int) -> date:
    """Add calendar months, clamping the day to the target month's length"""
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    day = min(from_date.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def reminder_time(due_date: date, now: datetime, hour: int = 9, grace_seconds: int = 5) -> datetime:
    """
    Local wall-clock moment to fire a due reminder.

    Defaults to the morning of the due date; if that moment has already
    passed the reminder fires shortly after now instead of being dropped.
    """
    at = datetime.combine(due_date, time(hour=hour))
    if at < now:
        at = now + timedelta(seconds=grace_seconds)
    return at
