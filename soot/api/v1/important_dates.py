"""Birthdays, anniversaries and other dates worth remembering."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from soot.api.deps import get_current_user, get_db
from soot.common.enums import ImportantDateType
from soot.common.exceptions import BadRequestError, NotFoundError
from soot.core.calendar.occurrences import (
    build_important_date_occurrences,
    day_range,
    next_occurrence,
    parse_iso_date_at_noon,
)
from soot.core.calendar.schemas import ImportantDateOccurrence
from soot.core.houses.service import require_membership, resolve_house_id
from soot.db.models.important_date import ImportantDate
from soot.db.models.user import User

router = APIRouter(prefix="/important-dates", tags=["Important dates"])

NOT_FOUND_MESSAGE = "Date importante introuvable"


# ---------- Schemas ----------


class ImportantDateCreate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    house_id: uuid.UUID | None = None
    title: str = Field(min_length=2, max_length=120)
    description: str | None = Field(None, max_length=500)
    type: ImportantDateType = ImportantDateType.OTHER
    date: str
    is_recurring_yearly: bool = True


class ImportantDateUpdate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    title: str | None = Field(None, min_length=2, max_length=120)
    description: str | None = Field(None, max_length=500)
    type: ImportantDateType | None = None
    date: str | None = None
    is_recurring_yearly: bool | None = None


class ImportantDateResponse(BaseModel):
    id: uuid.UUID
    house_id: uuid.UUID
    created_by_id: uuid.UUID
    title: str
    description: str | None
    date: date
    type: ImportantDateType
    is_recurring_yearly: bool
    next_occurrence: datetime
    created_at: datetime
    updated_at: datetime


class ImportantDateListResponse(BaseModel):
    house_id: uuid.UUID
    important_dates: list[ImportantDateResponse]
    occurrences: list[ImportantDateOccurrence]


class ImportantDateEnvelope(BaseModel):
    important_date: ImportantDateResponse


# ---------- Helpers ----------


def _serialize(item: ImportantDate) -> ImportantDateResponse:
    return ImportantDateResponse(
        id=item.id,
        house_id=item.house_id,
        created_by_id=item.created_by_id,
        title=item.title,
        description=item.description,
        date=item.date,
        type=item.type,
        is_recurring_yearly=item.is_recurring_yearly,
        next_occurrence=next_occurrence(item.date, item.is_recurring_yearly),
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


def _parse_date(raw: str) -> date:
    try:
        return parse_iso_date_at_noon(raw).date()
    except ValueError as e:
        raise BadRequestError(str(e))


async def _get_for_user(db: AsyncSession, important_date_id: uuid.UUID, user: User) -> ImportantDate:
    item = await db.get(ImportantDate, important_date_id)
    if item is None:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    await require_membership(db, user.id, item.house_id)
    return item


# ---------- Endpoints ----------


@router.get("", response_model=ImportantDateListResponse)
async def list_important_dates(
    house_id: uuid.UUID | None = Query(None),
    date_from: str | None = Query(None, alias="from"),
    date_to: str | None = Query(None, alias="to"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    resolved_house_id = await resolve_house_id(db, current_user.id, house_id)

    if (date_from is None) != (date_to is None):
        raise BadRequestError("Les paramètres from et to doivent être fournis ensemble")

    result = await db.execute(
        select(ImportantDate)
        .where(ImportantDate.house_id == resolved_house_id)
        .order_by(ImportantDate.date.asc(), ImportantDate.title.asc())
    )
    items = list(result.scalars().all())

    occurrences = []
    if date_from is not None and date_to is not None:
        try:
            start, end = day_range(date_from, date_to)
        except ValueError as e:
            raise BadRequestError(str(e))
        occurrences = build_important_date_occurrences(items, start, end)

    return ImportantDateListResponse(
        house_id=resolved_house_id,
        important_dates=[_serialize(item) for item in items],
        occurrences=occurrences,
    )


@router.post("", response_model=ImportantDateEnvelope, status_code=201)
async def create_important_date(
    body: ImportantDateCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    house_id = await resolve_house_id(db, current_user.id, body.house_id)
    item = ImportantDate(
        house_id=house_id,
        created_by_id=current_user.id,
        title=body.title,
        description=body.description or None,
        type=body.type.value,
        date=_parse_date(body.date),
        is_recurring_yearly=body.is_recurring_yearly,
    )
    db.add(item)
    await db.flush()
    return ImportantDateEnvelope(important_date=_serialize(item))


@router.get("/{important_date_id}", response_model=ImportantDateEnvelope)
async def get_important_date(
    important_date_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    item = await _get_for_user(db, important_date_id, current_user)
    return ImportantDateEnvelope(important_date=_serialize(item))


@router.patch("/{important_date_id}", response_model=ImportantDateEnvelope)
async def update_important_date(
    important_date_id: uuid.UUID,
    body: ImportantDateUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    updates = body.model_dump(exclude_unset=True)
    if not updates:
        raise BadRequestError("Au moins un champ doit être fourni")

    item = await _get_for_user(db, important_date_id, current_user)

    if "title" in updates:
        if not updates["title"]:
            raise BadRequestError("Le titre est obligatoire")
        item.title = updates["title"]
    if "description" in updates:
        item.description = updates["description"] or None
    if updates.get("type") is not None:
        item.type = updates["type"].value
    if updates.get("date") is not None:
        item.date = _parse_date(updates["date"])
    if updates.get("is_recurring_yearly") is not None:
        item.is_recurring_yearly = updates["is_recurring_yearly"]

    await db.flush()
    return ImportantDateEnvelope(important_date=_serialize(item))


@router.delete("/{important_date_id}")
async def delete_important_date(
    important_date_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    item = await _get_for_user(db, important_date_id, current_user)
    await db.delete(item)
    await db.flush()
    return {"ok": True}
