import datetime as dt
import uuid

from sqlalchemy import Date, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from soot.common.enums import ImportantDateType
from soot.db.base import BaseModel


class ImportantDate(BaseModel):
    __tablename__ = "important_dates"

    house_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("houses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_by_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    type: Mapped[ImportantDateType] = mapped_column(
        String(20), nullable=False, default=ImportantDateType.OTHER.value
    )
    is_recurring_yearly: Mapped[bool] = mapped_column(default=True, nullable=False)
