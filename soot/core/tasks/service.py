"""Task creation and updates scoped to a house."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from soot.common.dates import at_noon, utcnow
from soot.common.enums import RecurrenceUnit, TaskStatus
from soot.common.logging import get_logger
from soot.core.notifications.service import notify_task_assigned, notify_task_status_changed
from soot.db.models.equipment import Equipment
from soot.db.models.house import Animal, Category, HouseMember, Person, Zone
from soot.db.models.project import Project
from soot.db.models.task import Task

logger = get_logger("tasks.service")

RELATION_MODELS = {
    "zone_id": Zone,
    "category_id": Category,
    "project_id": Project,
    "equipment_id": Equipment,
    "animal_id": Animal,
    "person_id": Person,
}

# Fields a series template shares with its generated instances
SERIES_FIELDS = (
    "title",
    "description",
    "reminder_offset_days",
    "assignee_id",
    *RELATION_MODELS,
    "bypass_quiet_hours",
    "bypass_schedule",
    "escalation_enabled",
    "escalation_delay_hours",
)


async def resolve_relation_id(
    db: AsyncSession, house_id: uuid.UUID, field: str, value: uuid.UUID | None
) -> uuid.UUID | None:
    """Drop ids that do not point at a row of the same house."""
    if value is None:
        return None
    model = RELATION_MODELS[field]
    found = await db.scalar(select(model.id).where(model.id == value, model.house_id == house_id))
    return found


async def resolve_assignee_id(
    db: AsyncSession, house_id: uuid.UUID, user_id: uuid.UUID | None
) -> uuid.UUID | None:
    if user_id is None:
        return None
    member = await db.scalar(
        select(HouseMember.id).where(HouseMember.house_id == house_id, HouseMember.user_id == user_id)
    )
    return user_id if member is not None else None


async def _clean_fields(db: AsyncSession, house_id: uuid.UUID, fields: dict[str, Any]) -> dict[str, Any]:
    cleaned = dict(fields)
    for field in RELATION_MODELS:
        if field in cleaned:
            cleaned[field] = await resolve_relation_id(db, house_id, field, cleaned[field])
    if "assignee_id" in cleaned:
        cleaned["assignee_id"] = await resolve_assignee_id(db, house_id, cleaned["assignee_id"])
    return cleaned


async def create_task(
    db: AsyncSession,
    house_id: uuid.UUID,
    actor_id: uuid.UUID,
    title: str,
    due_date: date | None = None,
    recurrence_unit: RecurrenceUnit | None = None,
    recurrence_interval: int | None = None,
    **fields: Any,
) -> Task:
    """Create a task and return the instance the user works on.

    A recurring task is stored as a template plus its first instance; later
    instances are materialised by the recurrence job.
    """
    cleaned = await _clean_fields(db, house_id, fields)
    assigned_at = utcnow() if cleaned.get("assignee_id") else None
    due = at_noon(due_date) if due_date else None

    parent_id = None
    if recurrence_unit is not None:
        due = due or at_noon(datetime.now())
        template = Task(
            house_id=house_id,
            title=title,
            due_date=due,
            is_template=True,
            recurrence_unit=RecurrenceUnit(recurrence_unit).value,
            recurrence_interval=max(1, recurrence_interval or 1),
            created_by_id=actor_id,
            assigned_at=assigned_at,
            **cleaned,
        )
        db.add(template)
        await db.flush()
        parent_id = template.id

    task = Task(
        house_id=house_id,
        title=title,
        due_date=due,
        created_by_id=actor_id,
        assigned_at=assigned_at,
        parent_id=parent_id,
        **cleaned,
    )
    db.add(task)
    await db.flush()
    logger.info("Task created: id=%s house=%s recurring=%s", task.id, house_id, parent_id is not None)

    await notify_task_assigned(db, task, actor_id)
    return task


async def update_task(db: AsyncSession, task: Task, updates: dict[str, Any]) -> Task:
    """Apply a partial update; series fields are copied onto the template too."""
    cleaned = await _clean_fields(db, task.house_id, updates)
    if "due_date" in cleaned:
        cleaned["due_date"] = at_noon(cleaned["due_date"]) if cleaned["due_date"] else None
    if cleaned.get("assignee_id") and cleaned["assignee_id"] != task.assignee_id:
        cleaned["assigned_at"] = utcnow()

    for field, value in cleaned.items():
        setattr(task, field, value)

    if task.parent_id is not None:
        template = await db.get(Task, task.parent_id)
        if template is not None:
            for field in SERIES_FIELDS:
                if field in cleaned:
                    setattr(template, field, cleaned[field])

    await db.flush()
    return task


async def update_task_status(
    db: AsyncSession, task: Task, status: TaskStatus, actor_id: uuid.UUID
) -> Task:
    previous = TaskStatus(task.status)
    task.status = TaskStatus(status).value
    await db.flush()

    if previous != TaskStatus.DONE and task.status == TaskStatus.DONE.value:
        recipients = dict.fromkeys(r for r in (task.created_by_id, task.assignee_id) if r)
        for recipient_id in recipients:
            await notify_task_status_changed(db, task, recipient_id, actor_id)
    return task


async def update_task_assignee(
    db: AsyncSession, task: Task, assignee_id: uuid.UUID | None, actor_id: uuid.UUID
) -> Task:
    previous = task.assignee_id
    task.assignee_id = await resolve_assignee_id(db, task.house_id, assignee_id)
    if task.assignee_id and task.assignee_id != previous:
        task.assigned_at = utcnow()
    await db.flush()

    if task.assignee_id and task.assignee_id != previous:
        await notify_task_assigned(db, task, actor_id)
    return task
