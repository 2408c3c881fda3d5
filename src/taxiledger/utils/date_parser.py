"""Date parsing utilities."""

import calendar
import re
from datetime import date, timedelta
from typing import Callable

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

_MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})$")


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Accepts ISO and free-form dates ("2025-01-15", "Jan 15 2025") plus
    "today", "yesterday", "tomorrow", and "this/last/next month|week|year",
    which resolve to the first day of that period.

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = date_str.strip().lower()
    today = date.today()

    fixed = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if text in fixed:
        return fixed[text]

    parts = text.split()
    if len(parts) == 2 and parts[0] in ("last", "this", "next"):
        step = {"last": -1, "this": 0, "next": 1}[parts[0]]
        unit = parts[1]
        if unit == "month":
            return (today + relativedelta(months=step)).replace(day=1)
        if unit == "year":
            return today.replace(month=1, day=1) + relativedelta(years=step)
        if unit == "week":
            return today - timedelta(days=today.weekday()) + timedelta(weeks=step)

    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}") from e


def parse_month(month_str: str) -> tuple[date, date]:
    """Bounds of a month given as YYYY-MM.

    Raises:
        ValueError: If the string is not a valid YYYY-MM month
    """
    match = _MONTH_PATTERN.match(month_str.strip())
    if match is None:
        raise ValueError(f"Month must look like YYYY-MM, got '{month_str}'")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    return month_bounds(year, month)


def _this_month(today: date) -> tuple[date, date]:
    return month_bounds(today.year, today.month)


def _last_month(today: date) -> tuple[date, date]:
    previous = today - relativedelta(months=1)
    return month_bounds(previous.year, previous.month)


def _this_week(today: date) -> tuple[date, date]:
    monday = today - timedelta(days=today.weekday())
    return monday, monday + timedelta(days=6)


def _last_week(today: date) -> tuple[date, date]:
    monday = today - timedelta(days=today.weekday() + 7)
    return monday, monday + timedelta(days=6)


def _this_year(today: date) -> tuple[date, date]:
    return date(today.year, 1, 1), date(today.year, 12, 31)


def _last_year(today: date) -> tuple[date, date]:
    return date(today.year - 1, 1, 1), date(today.year - 1, 12, 31)


PERIODS: dict[str, Callable[[date], tuple[date, date]]] = {
    "this-month": _this_month,
    "last-month": _last_month,
    "this-week": _this_week,
    "last-week": _last_week,
    "this-year": _this_year,
    "last-year": _last_year,
}


def get_date_range(period: str, today: date | None = None) -> tuple[date, date]:
    """Full start and end dates of a named billing period.

    Periods cover whole months, weeks (Monday to Sunday) or years, since
    statements are billed over complete periods.

    Raises:
        ValueError: If period string is not recognized
    """
    key = period.strip().lower()
    if key not in PERIODS:
        raise ValueError(f"Unknown period: '{period}'. Supported periods: {', '.join(PERIODS)}")
    return PERIODS[key](today or date.today())
