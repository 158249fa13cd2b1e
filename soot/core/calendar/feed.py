"""Per-user iCal feed: rotating access token and document rendering."""

from __future__ import annotations

import secrets
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode

from icalendar import Calendar, Event
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from soot.common.dates import utcnow
from soot.common.exceptions import ConflictError
from soot.common.logging import get_logger
from soot.config import settings
from soot.core.calendar.occurrences import build_important_date_occurrences, default_window
from soot.db.models.user import User

logger = get_logger("calendar.feed")

FEED_TOKEN_BYTES = 24
FEED_TOKEN_ATTEMPTS = 4
FEED_TOKEN_MIN_LENGTH = 10


def build_feed_url(token: str) -> str:
    return f"{settings.APP_URL.rstrip('/')}/api/v1/calendar/feed?{urlencode({'token': token})}"


async def create_unique_token(db: AsyncSession) -> str:
    for _ in range(FEED_TOKEN_ATTEMPTS):
        token = secrets.token_hex(FEED_TOKEN_BYTES)
        existing = await db.execute(select(User.id).where(User.calendar_feed_token == token))
        if existing.scalar_one_or_none() is None:
            return token
    raise ConflictError("Impossible de générer un lien de calendrier unique.")


async def ensure_feed_token(db: AsyncSession, user: User) -> str:
    if user.calendar_feed_token:
        return user.calendar_feed_token
    return await regenerate_feed_token(db, user)


async def regenerate_feed_token(db: AsyncSession, user: User) -> str:
    """Replace the user's token; the previous link stops working at once."""
    user.calendar_feed_token = await create_unique_token(db)
    await db.flush()
    logger.info("Calendar feed token rotated for user=%s", user.id)
    return user.calendar_feed_token


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _app_link(path: str) -> str:
    return f"{settings.APP_URL.rstrip('/')}{path}"


def build_calendar_ics(
    calendar_name: str,
    tasks: Iterable[object],
    important_dates: Iterable[object],
    now: datetime | None = None,
) -> bytes:
    """Render open tasks and important-date occurrences as an iCalendar document.

    ``tasks`` need ``id``, ``title``, ``description``, ``due_date`` and
    ``updated_at``; tasks without a due date are skipped.
    """
    stamp = _as_utc(now or utcnow())

    cal = Calendar()
    cal.add("prodid", "-//Soot//Home Calendar//EN")
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")
    cal.add("method", "PUBLISH")
    cal.add("x-wr-calname", calendar_name)
    cal.add("x-wr-timezone", "UTC")

    for task in tasks:
        if task.due_date is None:
            continue
        start = _as_utc(task.due_date)
        event = Event()
        event.add("uid", f"soot-task-{task.id}@soot")
        event.add("dtstamp", _as_utc(task.updated_at or stamp))
        event.add("dtstart", start)
        event.add("dtend", start + timedelta(hours=1))
        event.add("summary", task.title)
        if task.description:
            event.add("description", task.description)
        event.add("url", _app_link(f"/app/tasks/{task.id}"))
        cal.add_component(event)

    date_from, date_to = default_window(
        stamp.replace(tzinfo=None), settings.CALENDAR_YEARS_BEFORE, settings.CALENDAR_YEARS_AFTER
    )
    for occurrence in build_important_date_occurrences(important_dates, date_from, date_to):
        day = occurrence.occurrence_date.date()
        event = Event()
        event.add("uid", f"soot-important-{occurrence.id}@soot")
        event.add("dtstamp", stamp)
        event.add("dtstart", day)
        event.add("dtend", day + timedelta(days=1))
        event.add("summary", occurrence.title)
        if occurrence.description:
            event.add("description", occurrence.description)
        event.add("url", _app_link("/app/settings"))
        cal.add_component(event)

    return cal.to_ical()
