"""Household budget: monthly view, manual entries and recurring rules."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from soot.api.deps import get_current_membership, get_current_user, get_db
from soot.common.dates import at_noon
from soot.common.enums import BudgetEntrySource, BudgetEntryType
from soot.common.exceptions import BadRequestError, NotFoundError
from soot.core.budget.months import parse_month_key, start_of_month_from_key, to_month_key
from soot.core.budget.schemas import BudgetMonthSummary
from soot.core.budget.service import load_month_summary
from soot.core.houses.service import require_membership
from soot.core.schema_guard import budget_tables_guard
from soot.db.models.budget import BudgetEntry, BudgetRecurringEntry
from soot.db.models.house import HouseMember
from soot.db.models.user import User

router = APIRouter(prefix="/budgets", tags=["Budget"])


# ---------- Schemas ----------


class BudgetEntryCreate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    type: BudgetEntryType
    label: str = Field(min_length=2, max_length=200)
    amount_cents: int = Field(gt=0, le=100_000_000)
    occurred_on: date
    is_forecast: bool = False
    notes: str | None = Field(None, max_length=1000)


class BudgetEntryResponse(BaseModel):
    id: uuid.UUID
    house_id: uuid.UUID
    type: BudgetEntryType
    source: BudgetEntrySource
    label: str
    amount_cents: int
    occurred_on: datetime
    is_forecast: bool
    notes: str | None

    model_config = {"from_attributes": True}


class RecurringEntryCreate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    type: BudgetEntryType
    label: str = Field(min_length=2, max_length=200)
    amount_cents: int = Field(gt=0, le=100_000_000)
    day_of_month: int | None = Field(None, ge=1, le=31)
    start_month: str = Field(examples=["2025-01"])
    end_month: str | None = Field(None, examples=["2025-12"])
    notes: str | None = Field(None, max_length=1000)


class RecurringEntryResponse(BaseModel):
    id: uuid.UUID
    house_id: uuid.UUID
    type: BudgetEntryType
    label: str
    amount_cents: int
    day_of_month: int | None
    start_month: str
    end_month: str | None
    notes: str | None


# ---------- Helpers ----------


def _month_start(raw: str | None, label: str) -> datetime | None:
    if raw is None:
        return None
    key = parse_month_key(raw)
    if key is None:
        raise BadRequestError(f"{label} est invalide (format attendu YYYY-MM)")
    return start_of_month_from_key(key)


def _recurring_response(rule: BudgetRecurringEntry) -> RecurringEntryResponse:
    return RecurringEntryResponse(
        id=rule.id,
        house_id=rule.house_id,
        type=rule.type,
        label=rule.label,
        amount_cents=rule.amount_cents,
        day_of_month=rule.day_of_month,
        start_month=to_month_key(rule.start_month),
        end_month=to_month_key(rule.end_month) if rule.end_month else None,
        notes=rule.notes,
    )


# ---------- Endpoints ----------


@router.get("", response_model=BudgetMonthSummary)
async def get_month(
    month: str | None = Query(None, examples=["2025-03"]),
    membership: HouseMember = Depends(get_current_membership),
    db: AsyncSession = Depends(get_db),
):
    month_key = parse_month_key(month) or to_month_key(datetime.now())
    return await load_month_summary(db, membership.house_id, month_key)


@router.post("/entries", response_model=BudgetEntryResponse, status_code=201)
async def create_entry(
    body: BudgetEntryCreate,
    current_user: User = Depends(get_current_user),
    membership: HouseMember = Depends(get_current_membership),
    db: AsyncSession = Depends(get_db),
):
    entry = BudgetEntry(
        house_id=membership.house_id,
        created_by_id=current_user.id,
        type=body.type.value,
        source=BudgetEntrySource.MANUAL.value,
        label=body.label,
        amount_cents=body.amount_cents,
        occurred_on=at_noon(body.occurred_on),
        is_forecast=body.is_forecast,
        notes=body.notes or None,
    )
    async with budget_tables_guard():
        db.add(entry)
        await db.flush()
    return entry


@router.delete("/entries/{entry_id}")
async def delete_entry(
    entry_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    async with budget_tables_guard():
        entry = await db.get(BudgetEntry, entry_id)
        if entry is None:
            raise NotFoundError("Écriture budget introuvable")
        await require_membership(db, current_user.id, entry.house_id)
        await db.delete(entry)
        await db.flush()
    return {"ok": True}


@router.post("/recurring", response_model=RecurringEntryResponse, status_code=201)
async def create_recurring_entry(
    body: RecurringEntryCreate,
    current_user: User = Depends(get_current_user),
    membership: HouseMember = Depends(get_current_membership),
    db: AsyncSession = Depends(get_db),
):
    start_month = _month_start(body.start_month, "Le mois de début")
    end_month = _month_start(body.end_month, "Le mois de fin")
    if end_month is not None and end_month < start_month:
        raise BadRequestError("Le mois de fin doit être postérieur au mois de début")

    rule = BudgetRecurringEntry(
        house_id=membership.house_id,
        created_by_id=current_user.id,
        type=body.type.value,
        label=body.label,
        amount_cents=body.amount_cents,
        day_of_month=body.day_of_month,
        start_month=start_month,
        end_month=end_month,
        notes=body.notes or None,
    )
    async with budget_tables_guard():
        db.add(rule)
        await db.flush()
    return _recurring_response(rule)


@router.delete("/recurring/{recurring_entry_id}")
async def delete_recurring_entry(
    recurring_entry_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    async with budget_tables_guard():
        rule = await db.get(BudgetRecurringEntry, recurring_entry_id)
        if rule is None:
            raise NotFoundError("Règle récurrente introuvable")
        await require_membership(db, current_user.id, rule.house_id)
        await db.delete(rule)
        await db.flush()
    return {"ok": True}
