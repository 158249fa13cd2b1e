"""Monthly budget view: persisted entries plus projected recurring rules."""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from soot.common.enums import BudgetEntrySource, BudgetEntryType
from soot.core.budget.months import (
    format_euro_from_cents,
    month_range_from_key,
    recurring_occurrence_date,
    shift_month_key,
    to_month_key,
)
from soot.core.budget.schemas import BudgetLine, BudgetMonthSummary
from soot.core.schema_guard import budget_tables_guard
from soot.db.models.budget import BudgetEntry, BudgetRecurringEntry


def recurring_rule_applies(rule: BudgetRecurringEntry, month_key: str) -> bool:
    if to_month_key(rule.start_month) > month_key:
        return False
    return rule.end_month is None or to_month_key(rule.end_month) >= month_key


def summarize_month(
    month_key: str,
    entries: Iterable[BudgetEntry],
    recurring_entries: Iterable[BudgetRecurringEntry],
    now: datetime | None = None,
) -> BudgetMonthSummary:
    recurring_is_forecast = month_key > to_month_key(now or datetime.now())
    lines: list[BudgetLine] = []

    for entry in entries:
        lines.append(
            BudgetLine(
                id=str(entry.id),
                persisted=True,
                type=entry.type,
                source=entry.source,
                label=entry.label,
                amount_cents=entry.amount_cents,
                amount_label=format_euro_from_cents(entry.amount_cents),
                occurred_on=entry.occurred_on,
                is_forecast=entry.is_forecast,
                notes=entry.notes,
            )
        )

    for rule in recurring_entries:
        if not recurring_rule_applies(rule, month_key):
            continue
        lines.append(
            BudgetLine(
                id=f"recurring-{rule.id}-{month_key}",
                persisted=False,
                type=rule.type,
                source=BudgetEntrySource.RECURRING,
                label=rule.label,
                amount_cents=rule.amount_cents,
                amount_label=format_euro_from_cents(rule.amount_cents),
                occurred_on=recurring_occurrence_date(month_key, rule.day_of_month),
                is_forecast=recurring_is_forecast,
                notes=rule.notes,
                recurring_entry_id=rule.id,
            )
        )

    lines.sort(key=lambda line: (line.occurred_on, line.label.casefold()))

    income = sum(line.amount_cents for line in lines if line.type == BudgetEntryType.INCOME)
    expense = sum(line.amount_cents for line in lines if line.type == BudgetEntryType.EXPENSE)
    return BudgetMonthSummary(
        month=month_key,
        previous_month=shift_month_key(month_key, -1),
        next_month=shift_month_key(month_key, 1),
        lines=lines,
        income_cents=income,
        expense_cents=expense,
        balance_cents=income - expense,
        income_label=format_euro_from_cents(income),
        expense_label=format_euro_from_cents(expense),
        balance_label=format_euro_from_cents(income - expense),
    )


async def load_month_summary(
    db: AsyncSession, house_id: uuid.UUID, month_key: str
) -> BudgetMonthSummary:
    start, end = month_range_from_key(month_key)
    async with budget_tables_guard():
        entries = (
            await db.execute(
                select(BudgetEntry)
                .where(
                    BudgetEntry.house_id == house_id,
                    BudgetEntry.occurred_on >= start,
                    BudgetEntry.occurred_on < end,
                )
                .order_by(BudgetEntry.occurred_on.asc())
            )
        ).scalars().all()
        rules = (
            await db.execute(
                select(BudgetRecurringEntry).where(BudgetRecurringEntry.house_id == house_id)
            )
        ).scalars().all()
    return summarize_month(month_key, entries, rules)
