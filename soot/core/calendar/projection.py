"""Merge tasks and important dates into one list of calendar items."""

from __future__ import annotations

import uuid
from collections.abc import Collection, Iterable
from datetime import datetime, timedelta

from soot.common.enums import CalendarItemKind
from soot.core.calendar.occurrences import build_important_date_occurrences, default_window
from soot.core.calendar.schemas import CalendarItem, CalendarTaskSource


def _task_fields(task: CalendarTaskSource, generating: bool) -> dict:
    return {
        "image_url": task.image_url,
        "is_image_generating": generating,
        "zone_id": task.zone_id,
        "category_id": task.category_id,
        "assignee_id": task.assignee_id,
        "project_id": task.project_id,
        "equipment_id": task.equipment_id,
        "href": f"/app/tasks/{task.id}",
    }


def build_calendar_items(
    tasks: Iterable[object],
    important_dates: Iterable[object] = (),
    anchor: datetime | None = None,
    years_before: int = 2,
    years_after: int = 4,
    important_dates_href: str = "/app/settings",
    generating_task_ids: Collection[uuid.UUID] = (),
) -> list[CalendarItem]:
    items: list[CalendarItem] = []

    for raw in tasks:
        task = CalendarTaskSource.model_validate(raw)
        if task.due_date is None:
            continue

        shared = _task_fields(task, task.id in generating_task_ids)
        items.append(
            CalendarItem(
                id=str(task.id),
                title=task.title,
                due_date=task.due_date,
                kind=CalendarItemKind.TASK,
                **shared,
            )
        )

        offset = task.reminder_offset_days
        if offset and offset > 0:
            items.append(
                CalendarItem(
                    id=f"{task.id}-reminder-{offset}",
                    title=f"Rappel : {task.title}",
                    due_date=task.due_date - timedelta(days=offset),
                    kind=CalendarItemKind.REMINDER,
                    parent_id=str(task.id),
                    **shared,
                )
            )

    date_from, date_to = default_window(anchor, years_before, years_after)
    for occurrence in build_important_date_occurrences(important_dates, date_from, date_to):
        items.append(
            CalendarItem(
                id=occurrence.id,
                title=occurrence.title,
                due_date=occurrence.occurrence_date,
                kind=CalendarItemKind.IMPORTANT_DATE,
                important_date_id=occurrence.important_date_id,
                important_date_type=occurrence.type,
                description=occurrence.description,
                href=important_dates_href,
            )
        )

    return items
