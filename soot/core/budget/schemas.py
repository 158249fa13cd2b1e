import uuid
from datetime import datetime

from pydantic import BaseModel

from soot.common.enums import BudgetEntrySource, BudgetEntryType


class BudgetLine(BaseModel):
    id: str
    persisted: bool
    type: BudgetEntryType
    source: BudgetEntrySource
    label: str
    amount_cents: int
    amount_label: str
    occurred_on: datetime
    is_forecast: bool
    notes: str | None
    recurring_entry_id: uuid.UUID | None = None


class BudgetMonthSummary(BaseModel):
    month: str
    previous_month: str
    next_month: str
    lines: list[BudgetLine]
    income_cents: int
    expense_cents: int
    balance_cents: int
    income_label: str
    expense_label: str
    balance_label: str
