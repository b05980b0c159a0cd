"""Date parsing utilities."""

from datetime import date, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "January 15, 2024") and a few
    relative forms useful for due dates and payment dates:
    "today", "yesterday", "tomorrow", "+30d" / "-7d", "+2w", "+3m".

    Args:
        date_str: Date string
        today: Reference day for relative forms (defaults to date.today())

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = date_str.strip().lower()
    today = today or date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if text in relative_dates:
        return relative_dates[text]

    # Offsets such as "+30d", "-1w", "+3m"
    if len(text) >= 3 and text[0] in "+-" and text[-1] in "dwm" and text[1:-1].isdigit():
        count = int(text[1:-1]) * (1 if text[0] == "+" else -1)
        unit = text[-1]
        if unit == "d":
            return today + timedelta(days=count)
        if unit == "w":
            return today + timedelta(weeks=count)
        return today + relativedelta(months=count)

    try:
        return date_parser.parse(date_str.strip()).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")
