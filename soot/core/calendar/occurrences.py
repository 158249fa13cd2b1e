"""Expansion of important dates into concrete occurrences.

Every date is handled as a naive datetime pinned to noon so that a calendar
day never slides across a midnight boundary when it is serialised.
"""

from __future__ import annotations

import calendar
import re
from collections.abc import Iterable
from datetime import MAXYEAR, MINYEAR, date, datetime, time

from soot.common.dates import at_noon
from soot.core.calendar.schemas import ImportantDateOccurrence, ImportantDateRecord

ISO_DATE_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_iso_date_at_noon(value: str) -> datetime:
    if not ISO_DATE_REGEX.match(value or ""):
        raise ValueError("Format de date attendu: YYYY-MM-DD")
    try:
        parsed = date.fromisoformat(value)
    except ValueError:
        raise ValueError("Date invalide") from None
    return at_noon(parsed)


def day_range(from_raw: str, to_raw: str) -> tuple[datetime, datetime]:
    """Inclusive range covering the whole of both boundary days."""
    start = datetime.combine(parse_iso_date_at_noon(from_raw).date(), time.min)
    end = datetime.combine(parse_iso_date_at_noon(to_raw).date(), time.max)
    return start, end


def resolve_recurring_date_for_year(source: date | datetime, year: int) -> datetime:
    """Same month and day in ``year``.

    A day that does not exist in the target year (29 February) is clamped to
    the last day of that month.
    """
    last_day = calendar.monthrange(year, source.month)[1]
    return at_noon(date(year, source.month, min(source.day, last_day)))


def next_occurrence(
    source: date | datetime,
    is_recurring_yearly: bool,
    reference: datetime | None = None,
) -> datetime:
    if not is_recurring_yearly:
        return at_noon(source)

    ref = datetime.combine((reference or datetime.now()).date(), time.min)
    this_year = resolve_recurring_date_for_year(source, ref.year)
    if this_year >= ref or ref.year >= MAXYEAR:
        return this_year
    return resolve_recurring_date_for_year(source, ref.year + 1)


def build_important_date_occurrences(
    records: Iterable[object],
    date_from: datetime,
    date_to: datetime,
) -> list[ImportantDateOccurrence]:
    occurrences: list[ImportantDateOccurrence] = []

    for raw in records:
        item = ImportantDateRecord.model_validate(raw)

        if not item.is_recurring_yearly:
            when = at_noon(item.date)
            if date_from <= when <= date_to:
                occurrences.append(
                    ImportantDateOccurrence(
                        id=f"{item.id}-{when.isoformat()}",
                        important_date_id=item.id,
                        title=item.title,
                        description=item.description,
                        type=item.type,
                        occurrence_date=when,
                        is_recurring_yearly=False,
                    )
                )
            continue

        first_year = max(MINYEAR, date_from.year - 1)
        last_year = min(MAXYEAR, date_to.year + 1)
        for year in range(first_year, last_year + 1):
            when = resolve_recurring_date_for_year(item.date, year)
            if when < date_from or when > date_to:
                continue
            occurrences.append(
                ImportantDateOccurrence(
                    id=f"{item.id}-{year}",
                    important_date_id=item.id,
                    title=item.title,
                    description=item.description,
                    type=item.type,
                    occurrence_date=when,
                    is_recurring_yearly=True,
                )
            )

    occurrences.sort(key=lambda o: (o.occurrence_date, o.title.casefold()))
    return occurrences


def default_window(
    anchor: datetime | None = None, years_before: int = 2, years_after: int = 4
) -> tuple[datetime, datetime]:
    """Jan 1 of ``anchor.year - years_before`` to Dec 31 of ``anchor.year + years_after``.

    Both ends are clamped to the years ``datetime`` can represent.
    """
    year = (anchor or datetime.now()).year
    start = datetime(max(MINYEAR, year - years_before), 1, 1)
    end = datetime.combine(date(min(MAXYEAR, year + years_after), 12, 31), time.max)
    return start, end
