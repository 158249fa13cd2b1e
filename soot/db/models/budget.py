import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from soot.common.enums import BudgetEntrySource, BudgetEntryType
from soot.db.base import BaseModel


class BudgetEntry(BaseModel):
    __tablename__ = "budget_entries"

    house_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("houses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_by_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False
    )
    type: Mapped[BudgetEntryType] = mapped_column(String(20), nullable=False)
    source: Mapped[BudgetEntrySource] = mapped_column(
        String(20), nullable=False, default=BudgetEntrySource.MANUAL.value
    )
    label: Mapped[str] = mapped_column(String(200), nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    occurred_on: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, index=True)
    is_forecast: Mapped[bool] = mapped_column(default=False, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class BudgetRecurringEntry(BaseModel):
    __tablename__ = "budget_recurring_entries"

    house_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("houses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_by_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False
    )
    type: Mapped[BudgetEntryType] = mapped_column(String(20), nullable=False)
    label: Mapped[str] = mapped_column(String(200), nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    day_of_month: Mapped[int | None] = mapped_column(Integer, nullable=True)
    start_month: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    end_month: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
