"""Date parsing utilities."""

import re
from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

_MONTH_PATTERN = re.compile(r"^(\d{4})[-/](\d{1,2})$")


def _relative_period_start(direction: str, period: str, today: date) -> date | None:
    if period == "week":
        monday = today - timedelta(days=today.weekday())
        return monday + timedelta(weeks={"last": -1, "this": 0, "next": 1}[direction])
    if period == "month":
        first = today.replace(day=1)
        return first + relativedelta(months={"last": -1, "this": 0, "next": 1}[direction])
    if period == "year":
        first = today.replace(month=1, day=1)
        return first + relativedelta(years={"last": -1, "this": 0, "next": 1}[direction])
    if direction == "last" and period in WEEKDAYS:
        days_ago = (today.weekday() - WEEKDAYS.index(period)) % 7 or 7
        return today - timedelta(days=days_ago)
    return None


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2025-05-30", "30 May 2025", etc.
    - Relative dates: "today", "yesterday", "tomorrow"
    - Period starts: "last month", "this week", "next year", "last friday"

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    direction, _, period = date_str.partition(" ")
    if direction in ("last", "this", "next") and period:
        start = _relative_period_start(direction, period, today)
        if start is not None:
            return start

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_month(month_str: str) -> tuple[int, int]:
    """Parse a month into (year, month).

    Accepts "2025-05", "2025/5", "this month", "next month", "last month", or
    any date inside the month.

    Raises:
        ValueError: If the month cannot be parsed
    """
    value = month_str.strip()
    match = _MONTH_PATTERN.match(value)
    if match:
        year, month = int(match.group(1)), int(match.group(2))
        if not 1 <= month <= 12:
            raise ValueError(f"Invalid month '{month_str}'")
        return year, month

    parsed = parse_date(value)
    return parsed.year, parsed.month


def get_date_range(period: str) -> tuple[date, date]:
    """Get start and end dates for a specified period.

    Current periods run up to today; past periods cover the whole period.

    Args:
        period: Period string (this-month, this-year, this-week, last-month, last-year, last-week)

    Returns:
        Tuple of (start_date, end_date) for the specified period

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = date.today()

    direction, _, unit = period.partition("-")
    if direction in ("this", "last") and unit in ("week", "month", "year"):
        start = _relative_period_start(direction, unit, today)
        if direction == "this":
            return (start, today)
        end = _relative_period_start("this", unit, today) - timedelta(days=1)
        return (start, end)

    raise ValueError(
        f"Unknown period: '{period}'. Supported periods: this-month, this-year, "
        "this-week, last-month, last-year, last-week"
    )
