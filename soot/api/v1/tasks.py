"""Household tasks: CRUD, status and assignee changes, illustrations."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from soot.api.deps import get_current_membership, get_current_user, get_db
from soot.common.enums import ImageEntityType, RecurrenceUnit, TaskStatus
from soot.common.exceptions import BadRequestError, NotFoundError
from soot.core.houses.service import require_membership
from soot.core.images.service import generating_entity_ids, request_image_generation
from soot.core.recurrence.service import ensure_recurring_tasks
from soot.core.tasks import service as tasks_service
from soot.db.models.house import HouseMember
from soot.db.models.task import Task
from soot.db.models.user import User

router = APIRouter(prefix="/tasks", tags=["Tasks"])


# ---------- Schemas ----------


class TaskFields(BaseModel):
    model_config = {"str_strip_whitespace": True}

    description: str | None = Field(None, max_length=2000)
    reminder_offset_days: int | None = Field(None, ge=0, le=365)
    assignee_id: uuid.UUID | None = None
    zone_id: uuid.UUID | None = None
    category_id: uuid.UUID | None = None
    project_id: uuid.UUID | None = None
    equipment_id: uuid.UUID | None = None
    animal_id: uuid.UUID | None = None
    person_id: uuid.UUID | None = None
    bypass_quiet_hours: bool = False
    bypass_schedule: bool = False
    escalation_enabled: bool | None = None
    escalation_delay_hours: int | None = Field(None, ge=1, le=24 * 30)


class TaskCreate(TaskFields):
    title: str = Field(min_length=2, max_length=200)
    due_date: date | None = None
    recurrence_unit: RecurrenceUnit | None = None
    recurrence_interval: int | None = Field(None, ge=1, le=365)


class TaskUpdate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    title: str | None = Field(None, min_length=2, max_length=200)
    description: str | None = Field(None, max_length=2000)
    due_date: date | None = None
    reminder_offset_days: int | None = Field(None, ge=0, le=365)
    zone_id: uuid.UUID | None = None
    category_id: uuid.UUID | None = None
    project_id: uuid.UUID | None = None
    equipment_id: uuid.UUID | None = None
    animal_id: uuid.UUID | None = None
    person_id: uuid.UUID | None = None
    bypass_quiet_hours: bool | None = None
    bypass_schedule: bool | None = None
    escalation_enabled: bool | None = None
    escalation_delay_hours: int | None = Field(None, ge=1, le=24 * 30)


class StatusUpdate(BaseModel):
    status: TaskStatus


class AssigneeUpdate(BaseModel):
    assignee_id: uuid.UUID | None = None


class TaskResponse(BaseModel):
    id: uuid.UUID
    house_id: uuid.UUID
    title: str
    description: str | None
    status: str
    due_date: datetime | None
    reminder_offset_days: int | None
    parent_id: uuid.UUID | None
    created_by_id: uuid.UUID
    assignee_id: uuid.UUID | None
    assigned_at: datetime | None
    zone_id: uuid.UUID | None
    category_id: uuid.UUID | None
    project_id: uuid.UUID | None
    equipment_id: uuid.UUID | None
    animal_id: uuid.UUID | None
    person_id: uuid.UUID | None
    image_url: str | None
    is_image_generating: bool = False
    bypass_quiet_hours: bool
    bypass_schedule: bool
    escalation_enabled: bool | None
    escalation_delay_hours: int | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TaskListResponse(BaseModel):
    tasks: list[TaskResponse]
    total: int


# ---------- Helpers ----------


async def _get_task(db: AsyncSession, task_id: uuid.UUID, user: User) -> Task:
    task = await db.get(Task, task_id)
    if task is None or task.is_template:
        raise NotFoundError("Tâche introuvable")
    await require_membership(db, user.id, task.house_id)
    return task


async def _task_response(db: AsyncSession, task: Task) -> TaskResponse:
    generating = await generating_entity_ids(db, ImageEntityType.TASK, [task.id])
    response = TaskResponse.model_validate(task)
    response.is_image_generating = task.id in generating
    return response


# ---------- Endpoints ----------


@router.post("", response_model=TaskResponse, status_code=201)
async def create_task(
    body: TaskCreate,
    current_user: User = Depends(get_current_user),
    membership: HouseMember = Depends(get_current_membership),
    db: AsyncSession = Depends(get_db),
):
    if body.recurrence_unit is None and body.recurrence_interval is not None:
        raise BadRequestError("Une fréquence est requise pour une tâche récurrente")

    task = await tasks_service.create_task(
        db,
        house_id=membership.house_id,
        actor_id=current_user.id,
        title=body.title,
        due_date=body.due_date,
        recurrence_unit=body.recurrence_unit,
        recurrence_interval=body.recurrence_interval,
        **body.model_dump(include=set(TaskFields.model_fields)),
    )
    await request_image_generation(db, ImageEntityType.TASK, task.id, owner=str(current_user.id))
    return await _task_response(db, task)


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    status: TaskStatus | None = Query(None),
    assignee_id: uuid.UUID | None = Query(None),
    zone_id: uuid.UUID | None = Query(None),
    category_id: uuid.UUID | None = Query(None),
    project_id: uuid.UUID | None = Query(None),
    membership: HouseMember = Depends(get_current_membership),
    db: AsyncSession = Depends(get_db),
):
    await ensure_recurring_tasks(db, membership.house_id)

    query = select(Task).where(Task.house_id == membership.house_id, Task.is_template.is_(False))
    if status is not None:
        query = query.where(Task.status == status.value)
    if assignee_id is not None:
        query = query.where(Task.assignee_id == assignee_id)
    if zone_id is not None:
        query = query.where(Task.zone_id == zone_id)
    if category_id is not None:
        query = query.where(Task.category_id == category_id)
    if project_id is not None:
        query = query.where(Task.project_id == project_id)
    query = query.order_by(Task.status.asc(), Task.due_date.asc())

    tasks = list((await db.execute(query)).scalars().all())
    generating = await generating_entity_ids(db, ImageEntityType.TASK, [t.id for t in tasks])

    items = []
    for task in tasks:
        item = TaskResponse.model_validate(task)
        item.is_image_generating = task.id in generating
        items.append(item)
    return TaskListResponse(tasks=items, total=len(items))


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task = await _get_task(db, task_id, current_user)
    return await _task_response(db, task)


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: uuid.UUID,
    body: TaskUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task = await _get_task(db, task_id, current_user)
    updates = body.model_dump(exclude_unset=True)
    if not updates:
        raise BadRequestError("Au moins un champ doit être fourni")
    if "title" in updates:
        if not updates["title"]:
            raise BadRequestError("Le titre est obligatoire")

    task = await tasks_service.update_task(db, task, updates)
    return await _task_response(db, task)


@router.delete("/{task_id}")
async def delete_task(
    task_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task = await _get_task(db, task_id, current_user)
    await db.delete(task)
    await db.flush()
    return {"ok": True}


@router.post("/{task_id}/status", response_model=TaskResponse)
async def update_status(
    task_id: uuid.UUID,
    body: StatusUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task = await _get_task(db, task_id, current_user)
    task = await tasks_service.update_task_status(db, task, body.status, current_user.id)
    return await _task_response(db, task)


@router.post("/{task_id}/assignee", response_model=TaskResponse)
async def update_assignee(
    task_id: uuid.UUID,
    body: AssigneeUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task = await _get_task(db, task_id, current_user)
    task = await tasks_service.update_task_assignee(db, task, body.assignee_id, current_user.id)
    return await _task_response(db, task)


@router.post("/{task_id}/image", response_model=TaskResponse, status_code=202)
async def regenerate_image(
    task_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task = await _get_task(db, task_id, current_user)
    await request_image_generation(db, ImageEntityType.TASK, task.id, owner=str(current_user.id))
    return await _task_response(db, task)
