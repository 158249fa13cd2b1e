import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from soot.common.enums import NotificationType
from soot.db.base import BaseModel


class Notification(BaseModel):
    __tablename__ = "notifications"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    house_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("houses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    task_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True, index=True
    )
    type: Mapped[NotificationType] = mapped_column(String(30), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    body: Mapped[str | None] = mapped_column(Text, nullable=True)
    link_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    dedupe_key: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    email_sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class NotificationSettings(BaseModel):
    __tablename__ = "notification_settings"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    quiet_hours_enabled: Mapped[bool] = mapped_column(default=False, nullable=False)
    quiet_hours_start_minutes: Mapped[int] = mapped_column(Integer, default=22 * 60, nullable=False)
    quiet_hours_end_minutes: Mapped[int] = mapped_column(Integer, default=7 * 60, nullable=False)
    schedule_enabled: Mapped[bool] = mapped_column(default=False, nullable=False)
    schedule_days: Mapped[list | None] = mapped_column(JSONB, nullable=True, default=list)
    schedule_start_minutes: Mapped[int] = mapped_column(Integer, default=8 * 60, nullable=False)
    schedule_end_minutes: Mapped[int] = mapped_column(Integer, default=18 * 60, nullable=False)
    escalation_enabled: Mapped[bool] = mapped_column(default=True, nullable=False)
    escalation_delay_hours: Mapped[int] = mapped_column(Integer, default=24, nullable=False)
