"""In-app notifications and email delivery preferences."""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from soot.api.deps import get_current_user, get_db
from soot.common.dates import utcnow
from soot.common.enums import Weekday
from soot.common.exceptions import BadRequestError, NotFoundError
from soot.common.pagination import PaginatedResponse, PaginationParams, paginate, total_pages
from soot.core.notifications.service import get_preferences, unread_count
from soot.core.notifications.settings import format_minutes_to_time, parse_time_to_minutes
from soot.db.models.notification import Notification, NotificationSettings
from soot.db.models.user import User

router = APIRouter(prefix="/notifications", tags=["Notifications"])


# ---------- Schemas ----------


class NotificationResponse(BaseModel):
    id: uuid.UUID
    house_id: uuid.UUID
    task_id: uuid.UUID | None
    type: str
    title: str
    body: str | None
    link_url: str | None
    read_at: datetime | None
    email_sent_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationListResponse(PaginatedResponse[NotificationResponse]):
    unread_count: int


class NotificationSettingsPayload(BaseModel):
    quiet_hours_enabled: bool
    quiet_hours_start: str = Field(examples=["22:00"])
    quiet_hours_end: str = Field(examples=["07:00"])
    schedule_enabled: bool
    schedule_days: list[Weekday]
    schedule_start: str = Field(examples=["08:00"])
    schedule_end: str = Field(examples=["18:00"])
    escalation_enabled: bool
    escalation_delay_hours: int = Field(ge=1, le=24 * 30)


# ---------- Endpoints ----------


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    params: PaginationParams = Depends(),
    unread_only: bool = False,
):
    query = select(Notification).where(Notification.user_id == current_user.id)
    if unread_only:
        query = query.where(Notification.read_at.is_(None))
    query = query.order_by(Notification.created_at.desc())

    items, total = await paginate(db, query, params)
    return NotificationListResponse(
        items=[NotificationResponse.model_validate(n) for n in items],
        total=total,
        page=params.page,
        page_size=params.page_size,
        total_pages=total_pages(total, params.page_size),
        unread_count=await unread_count(db, current_user.id),
    )


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notification = await db.get(Notification, notification_id)
    if notification is None or notification.user_id != current_user.id:
        raise NotFoundError("Notification introuvable")

    if notification.read_at is None:
        notification.read_at = utcnow()
        await db.flush()
    return notification


@router.post("/read-all")
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == current_user.id, Notification.read_at.is_(None))
        .values(read_at=utcnow())
    )
    return {"ok": True, "updated": result.rowcount}


@router.get("/settings", response_model=NotificationSettingsPayload)
async def get_settings(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    prefs = await get_preferences(db, current_user.id)
    return NotificationSettingsPayload(
        quiet_hours_enabled=prefs.quiet_hours_enabled,
        quiet_hours_start=format_minutes_to_time(prefs.quiet_hours_start_minutes),
        quiet_hours_end=format_minutes_to_time(prefs.quiet_hours_end_minutes),
        schedule_enabled=prefs.schedule_enabled,
        schedule_days=prefs.schedule_days,
        schedule_start=format_minutes_to_time(prefs.schedule_start_minutes),
        schedule_end=format_minutes_to_time(prefs.schedule_end_minutes),
        escalation_enabled=prefs.escalation_enabled,
        escalation_delay_hours=prefs.escalation_delay_hours,
    )


@router.put("/settings", response_model=NotificationSettingsPayload)
async def update_settings(
    body: NotificationSettingsPayload,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    minutes = {}
    for field in ("quiet_hours_start", "quiet_hours_end", "schedule_start", "schedule_end"):
        value = parse_time_to_minutes(getattr(body, field))
        if value is None:
            raise BadRequestError("Heure invalide, format attendu HH:MM")
        minutes[f"{field}_minutes"] = value
    if body.schedule_enabled and not body.schedule_days:
        raise BadRequestError("Choisis au moins un jour de réception")

    record = await db.scalar(
        select(NotificationSettings).where(NotificationSettings.user_id == current_user.id)
    )
    if record is None:
        record = NotificationSettings(user_id=current_user.id)
        db.add(record)

    record.quiet_hours_enabled = body.quiet_hours_enabled
    record.schedule_enabled = body.schedule_enabled
    record.schedule_days = [day.value for day in dict.fromkeys(body.schedule_days)]
    record.escalation_enabled = body.escalation_enabled
    record.escalation_delay_hours = body.escalation_delay_hours
    for field, value in minutes.items():
        setattr(record, field, value)
    await db.flush()

    return body
