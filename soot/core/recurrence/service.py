"""Materialise child instances of recurring task templates."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta

from dateutil.relativedelta import relativedelta
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from soot.common.dates import at_noon, utcnow
from soot.common.enums import RecurrenceUnit, TaskStatus
from soot.common.logging import get_logger
from soot.config import settings
from soot.db.models.task import Task

logger = get_logger("recurrence.service")


def add_interval(value: datetime, unit: RecurrenceUnit | str, interval: int) -> datetime:
    unit = RecurrenceUnit(unit)
    if unit == RecurrenceUnit.WEEKLY:
        return value + relativedelta(weeks=interval)
    if unit == RecurrenceUnit.MONTHLY:
        return value + relativedelta(months=interval)
    if unit == RecurrenceUnit.YEARLY:
        return value + relativedelta(years=interval)
    return value + relativedelta(days=interval)


def _whole_units_between(start: datetime, end: datetime, unit: RecurrenceUnit) -> int:
    if unit == RecurrenceUnit.DAILY:
        return (end - start).days
    if unit == RecurrenceUnit.WEEKLY:
        return (end - start).days // 7
    delta = relativedelta(end, start)
    if unit == RecurrenceUnit.MONTHLY:
        return delta.years * 12 + delta.months
    return delta.years


def first_due_on_or_after(
    start: datetime, unit: RecurrenceUnit | str, interval: int, today: datetime
) -> datetime:
    """First date of the series ``start, start + interval, ...`` that is >= today."""
    unit = RecurrenceUnit(unit)
    interval = max(1, interval)
    cursor = at_noon(start)
    if cursor >= today:
        return cursor

    jumps = _whole_units_between(cursor, today, unit) // interval
    if jumps > 0:
        cursor = add_interval(cursor, unit, jumps * interval)
    while cursor < today:
        cursor = add_interval(cursor, unit, interval)
    return cursor


def due_dates_until(
    start: datetime, unit: RecurrenceUnit | str, interval: int, today: datetime, horizon: datetime
) -> list[datetime]:
    interval = max(1, interval)
    dates = []
    cursor = first_due_on_or_after(start, unit, interval, today)
    while cursor <= horizon:
        dates.append(cursor)
        cursor = add_interval(cursor, unit, interval)
    return dates


def _instance_from_template(template: Task, due: datetime) -> Task:
    return Task(
        house_id=template.house_id,
        title=template.title,
        description=template.description,
        status=TaskStatus.TODO.value,
        due_date=due,
        reminder_offset_days=template.reminder_offset_days,
        created_by_id=template.created_by_id,
        assignee_id=template.assignee_id,
        assigned_at=utcnow() if template.assignee_id else None,
        zone_id=template.zone_id,
        category_id=template.category_id,
        project_id=template.project_id,
        equipment_id=template.equipment_id,
        animal_id=template.animal_id,
        person_id=template.person_id,
        bypass_quiet_hours=template.bypass_quiet_hours,
        bypass_schedule=template.bypass_schedule,
        escalation_enabled=template.escalation_enabled,
        escalation_delay_hours=template.escalation_delay_hours,
        parent_id=template.id,
    )


async def ensure_recurring_tasks(
    db: AsyncSession, house_id: uuid.UUID, today: date | None = None
) -> int:
    """Create the missing instances up to the horizon; returns how many were added."""
    templates = (
        await db.execute(
            select(Task).where(
                Task.house_id == house_id,
                Task.is_template.is_(True),
                Task.recurrence_unit.is_not(None),
                Task.due_date.is_not(None),
            )
        )
    ).scalars().all()
    if not templates:
        return 0

    start_of_today = datetime.combine(today or datetime.now().date(), datetime.min.time())
    horizon = start_of_today + timedelta(days=settings.RECURRENCE_HORIZON_DAYS)
    created = 0

    for template in templates:
        existing = await db.execute(
            select(Task.due_date).where(Task.parent_id == template.id, Task.due_date.is_not(None))
        )
        existing_days = {due.date() for due in existing.scalars().all()}

        for due in due_dates_until(
            template.due_date,
            template.recurrence_unit,
            template.recurrence_interval or 1,
            start_of_today,
            horizon,
        ):
            if due.date() in existing_days:
                continue
            db.add(_instance_from_template(template, due))
            existing_days.add(due.date())
            created += 1

    if created:
        await db.flush()
        logger.info("Created %d recurring task instance(s) for house=%s", created, house_id)
    return created
