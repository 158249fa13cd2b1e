"""Month keys (``YYYY-MM``) used to page through the budget."""

from __future__ import annotations

import calendar
import re
from datetime import MAXYEAR, MINYEAR, date, datetime

from dateutil.relativedelta import relativedelta

MONTH_KEY_REGEX = re.compile(r"^\d{4}-\d{2}$")


def to_month_key(value: date | datetime) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def parse_month_key(raw: str | None) -> str | None:
    if not raw or not MONTH_KEY_REGEX.match(raw):
        return None
    year, month = int(raw[:4]), int(raw[5:7])
    if year < MINYEAR or month < 1 or month > 12:
        return None
    return raw


def start_of_month_from_key(month_key: str) -> datetime:
    year, month = (int(part) for part in month_key.split("-"))
    return datetime(year, month, 1)


def month_range_from_key(month_key: str) -> tuple[datetime, datetime]:
    """Half-open range ``[start, next month start)``."""
    start = start_of_month_from_key(month_key)
    if (start.year, start.month) == (MAXYEAR, 12):
        return start, datetime.max
    return start, start + relativedelta(months=1)


def shift_month_key(month_key: str, delta: int) -> str:
    """Move ``delta`` months, stopping at 0001-01 and 9999-12."""
    year, month = (int(part) for part in month_key.split("-"))
    index = year * 12 + month - 1 + delta
    index = max(MINYEAR * 12, min(MAXYEAR * 12 + 11, index))
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def occurs_in_month(value: date | datetime, month_key: str) -> bool:
    return to_month_key(value) == month_key


def recurring_occurrence_date(month_key: str, day_of_month: int | None) -> datetime:
    start = start_of_month_from_key(month_key)
    max_day = calendar.monthrange(start.year, start.month)[1]
    day = max(1, min(day_of_month or 1, max_day))
    return start.replace(day=day, hour=12)


def format_euro_from_cents(value: int) -> str:
    """French currency formatting, e.g. ``-1 234,56 €``."""
    sign = "-" if value < 0 else ""
    euros, cents = divmod(abs(value), 100)
    grouped = f"{euros:,}".replace(",", "\u202f")
    return f"{sign}{grouped},{cents:02d}\u00a0€"
