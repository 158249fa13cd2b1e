"""Calendar projection for the app and the subscribable iCal feed."""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.ext.asyncio import AsyncSession

from soot.api.deps import get_current_membership, get_current_user, get_db
from soot.common.enums import ClientStatus, ImageEntityType, TaskStatus
from soot.common.exceptions import BadRequestError, NotFoundError, PermissionDeniedError
from soot.common.logging import get_logger
from soot.config import settings
from soot.core.calendar.feed import (
    FEED_TOKEN_MIN_LENGTH,
    build_calendar_ics,
    build_feed_url,
    ensure_feed_token,
    regenerate_feed_token,
)
from soot.core.calendar.occurrences import parse_iso_date_at_noon
from soot.core.calendar.projection import build_calendar_items
from soot.core.calendar.schemas import CalendarItem
from soot.core.images.service import generating_entity_ids
from soot.core.recurrence.service import ensure_recurring_tasks
from soot.core.schema_guard import is_table_unavailable_error
from soot.db.models.house import House, HouseMember
from soot.db.models.important_date import ImportantDate
from soot.db.models.task import Task
from soot.db.models.user import User

router = APIRouter(prefix="/calendar", tags=["Calendar"])
logger = get_logger("api.calendar")


# ---------- Schemas ----------


class FeedTokenResponse(BaseModel):
    token: str
    url: str


class CalendarResponse(BaseModel):
    house_id: uuid.UUID
    anchor: datetime
    items: list[CalendarItem]


# ---------- Helpers ----------


async def _house_important_dates(db: AsyncSession, house_id: uuid.UUID) -> list[ImportantDate]:
    """Important dates of the house; empty when the table is not migrated yet.

    The query runs in a savepoint; a failure leaves the request transaction usable.
    """
    try:
        async with db.begin_nested():
            result = await db.execute(
                select(ImportantDate)
                .where(ImportantDate.house_id == house_id)
                .order_by(ImportantDate.date.asc(), ImportantDate.title.asc())
            )
            return list(result.scalars().all())
    except (ProgrammingError, OperationalError) as exc:
        if not is_table_unavailable_error(exc, hint="important_dates"):
            raise
        logger.warning("Important dates unavailable, serving tasks only: %s", exc.orig)
        return []


# ---------- Endpoints ----------


@router.get("/feed")
async def calendar_feed(
    token: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Public iCal document; the token in the URL is the only credential."""
    if not token or len(token) < FEED_TOKEN_MIN_LENGTH:
        raise BadRequestError("Paramètres invalides.")

    user = await db.scalar(select(User).where(User.calendar_feed_token == token))
    if user is None:
        raise NotFoundError("Lien invalide.")

    membership = await db.scalar(
        select(HouseMember)
        .where(HouseMember.user_id == user.id)
        .order_by(HouseMember.created_at.asc())
        .limit(1)
    )
    if membership is None:
        raise NotFoundError("Lien invalide.")

    house = await db.get(House, membership.house_id)
    if house.client_status == ClientStatus.INACTIVE.value:
        raise PermissionDeniedError("Client désactivé.")

    tasks = await db.execute(
        select(Task)
        .where(
            Task.house_id == house.id,
            Task.is_template.is_(False),
            Task.status != TaskStatus.DONE.value,
            Task.due_date.is_not(None),
        )
        .order_by(Task.due_date.asc(), Task.title.asc())
    )
    ics = build_calendar_ics(
        f"Soot - {house.name}",
        tasks.scalars().all(),
        await _house_important_dates(db, house.id),
    )
    logger.info("Calendar feed served for house=%s", house.id)

    return Response(
        content=ics,
        media_type="text/calendar; charset=utf-8",
        headers={
            "Content-Disposition": 'inline; filename="soot-calendar.ics"',
            "Cache-Control": "private, max-age=0, must-revalidate",
        },
    )


@router.get("/feed-token", response_model=FeedTokenResponse)
async def get_feed_token(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    token = await ensure_feed_token(db, current_user)
    return FeedTokenResponse(token=token, url=build_feed_url(token))


@router.post("/feed-token/regenerate", response_model=FeedTokenResponse)
async def regenerate_token(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    token = await regenerate_feed_token(db, current_user)
    return FeedTokenResponse(token=token, url=build_feed_url(token))


@router.get("", response_model=CalendarResponse)
async def get_calendar(
    anchor: str | None = Query(None),
    membership: HouseMember = Depends(get_current_membership),
    db: AsyncSession = Depends(get_db),
):
    if anchor:
        try:
            anchor_at = parse_iso_date_at_noon(anchor)
        except ValueError as e:
            raise BadRequestError(str(e))
    else:
        anchor_at = parse_iso_date_at_noon(datetime.now().date().isoformat())

    await ensure_recurring_tasks(db, membership.house_id)

    result = await db.execute(
        select(Task)
        .where(
            Task.house_id == membership.house_id,
            Task.is_template.is_(False),
            Task.due_date.is_not(None),
        )
        .order_by(Task.due_date.asc())
    )
    tasks = list(result.scalars().all())
    generating = await generating_entity_ids(db, ImageEntityType.TASK, [t.id for t in tasks])

    items = build_calendar_items(
        tasks,
        await _house_important_dates(db, membership.house_id),
        anchor=anchor_at,
        years_before=settings.CALENDAR_YEARS_BEFORE,
        years_after=settings.CALENDAR_YEARS_AFTER,
        generating_task_ids=generating,
    )
    return CalendarResponse(house_id=membership.house_id, anchor=anchor_at, items=items)
