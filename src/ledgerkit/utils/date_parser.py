"""Date parsing utilities.

Transactions store dates as ISO ``YYYY-MM-DD`` strings so that they sort
lexicographically; these helpers turn user input into that form.
"""

from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "January 15, 2024", etc.
    - Relative dates: "today", "yesterday", "tomorrow", "last monday",
      "this month", "last month", "N days ago"

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
        "this month": today.replace(day=1),
        "last month": (today - relativedelta(months=1)).replace(day=1),
        "this year": today.replace(month=1, day=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    if date_str.startswith("last ") and date_str[5:] in WEEKDAYS:
        target_day = WEEKDAYS.index(date_str[5:])
        days_ago = (today.weekday() - target_day) % 7 or 7
        return today - timedelta(days=days_ago)

    if date_str.endswith(" days ago"):
        count = date_str[: -len(" days ago")].strip()
        if count.isdigit():
            return today - timedelta(days=int(count))

    # Try parsing as absolute date
    try:
        return date_parser.parse(date_str).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}") from e


def to_iso_date(value: date | str) -> str:
    """Normalize a date or date string to ``YYYY-MM-DD``."""
    if isinstance(value, date):
        return value.isoformat()
    return parse_date(value).isoformat()
