import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from soot.common.enums import RecurrenceUnit, TaskStatus
from soot.db.base import BaseModel


def _optional_fk(table: str):
    return mapped_column(
        UUID(as_uuid=True), ForeignKey(f"{table}.id", ondelete="SET NULL"), nullable=True
    )


class Task(BaseModel):
    __tablename__ = "tasks"

    house_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("houses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[TaskStatus] = mapped_column(
        String(20), nullable=False, default=TaskStatus.TODO.value
    )
    # Calendar due date, normalised to noon local time
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    reminder_offset_days: Mapped[int | None] = mapped_column(Integer, nullable=True)

    is_template: Mapped[bool] = mapped_column(default=False, nullable=False)
    recurrence_unit: Mapped[RecurrenceUnit | None] = mapped_column(String(20), nullable=True)
    recurrence_interval: Mapped[int | None] = mapped_column(Integer, nullable=True)
    parent_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True, index=True
    )

    created_by_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False
    )
    assignee_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    zone_id: Mapped[uuid.UUID | None] = _optional_fk("zones")
    category_id: Mapped[uuid.UUID | None] = _optional_fk("categories")
    project_id: Mapped[uuid.UUID | None] = _optional_fk("projects")
    equipment_id: Mapped[uuid.UUID | None] = _optional_fk("equipment")
    animal_id: Mapped[uuid.UUID | None] = _optional_fk("animals")
    person_id: Mapped[uuid.UUID | None] = _optional_fk("people")

    image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    # Per-task notification overrides; None falls back to the assignee's settings
    bypass_quiet_hours: Mapped[bool] = mapped_column(default=False, nullable=False)
    bypass_schedule: Mapped[bool] = mapped_column(default=False, nullable=False)
    escalation_enabled: Mapped[bool | None] = mapped_column(nullable=True)
    escalation_delay_hours: Mapped[int | None] = mapped_column(Integer, nullable=True)

    parent = relationship("Task", remote_side="Task.id", lazy="selectin")
