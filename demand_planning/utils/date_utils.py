# demand_planning/utils/date_utils.py
from datetime import date, datetime
from typing import Tuple, Union
import calendar
import re

_MONTH_YEAR_PATTERN = re.compile(r'^(\d{4})-(\d{2})$')

MONTH_NAMES = list(calendar.month_name)[1:]

def parse_month_year(value: str) -> Tuple[int, int]:
    """Parse a YYYY-MM string.

    Args:
        value: Month in YYYY-MM format

    Returns:
        Tuple with year and month

    Raises:
        ValueError if the value is not a valid YYYY-MM month
    """
    match = _MONTH_YEAR_PATTERN.match(value.strip())
    if not match:
        raise ValueError(f"Invalid month '{value}', expected YYYY-MM")

    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month number {month} in '{value}'")

    return year, month

def format_month_year(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"

def month_start(value: Union[date, datetime]) -> date:
    """First day of the calendar month containing value."""
    return date(value.year, value.month, 1)

def month_name(month: int) -> str:
    return MONTH_NAMES[month - 1]

def convert_to_date(value: Union[str, date, datetime]) -> date:
    """Convert an ISO string, datetime or date to a date.

    Args:
        value: Date-like value

    Returns:
        Date object

    Raises:
        ValueError if the value cannot be converted
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            return datetime.strptime(text[:10], '%Y-%m-%d').date()
    raise ValueError(f"Cannot convert {value!r} to a date")
