import uuid
from datetime import date, datetime
from types import SimpleNamespace

from soot.common.enums import CalendarItemKind
from soot.core.calendar.projection import build_calendar_items


def _task(title="Tondre la pelouse", due=datetime(2025, 5, 10, 12), offset=None):
    return SimpleNamespace(
        id=uuid.uuid4(),
        title=title,
        due_date=due,
        reminder_offset_days=offset,
        image_url=None,
        zone_id=None,
        category_id=None,
        assignee_id=None,
        project_id=None,
        equipment_id=None,
    )


def test_task_with_reminder_yields_two_items():
    task = _task(offset=3)
    items = build_calendar_items([task], anchor=datetime(2025, 5, 1))

    assert [item.kind for item in items] == [CalendarItemKind.TASK, CalendarItemKind.REMINDER]
    reminder = items[1]
    assert reminder.id == f"{task.id}-reminder-3"
    assert reminder.parent_id == str(task.id)
    assert reminder.due_date == datetime(2025, 5, 7, 12)
    assert reminder.title == "Rappel : Tondre la pelouse"
    assert reminder.href == f"/app/tasks/{task.id}"


def test_tasks_without_due_date_are_skipped():
    assert build_calendar_items([_task(due=None)], anchor=datetime(2025, 5, 1)) == []


def test_zero_offset_adds_no_reminder():
    items = build_calendar_items([_task(offset=0)], anchor=datetime(2025, 5, 1))
    assert len(items) == 1


def test_generating_flag_follows_task_ids():
    task = _task()
    items = build_calendar_items([task], anchor=datetime(2025, 5, 1), generating_task_ids={task.id})
    assert items[0].is_image_generating is True


def test_important_dates_are_projected_over_the_window():
    important = SimpleNamespace(
        id=uuid.uuid4(),
        title="Anniversaire Papa",
        description="Penser au gâteau",
        date=date(1960, 9, 12),
        type="BIRTHDAY",
        is_recurring_yearly=True,
    )
    items = build_calendar_items(
        [], [important], anchor=datetime(2025, 1, 1), years_before=1, years_after=1
    )

    assert [item.due_date.year for item in items] == [2024, 2025, 2026]
    assert all(item.kind == CalendarItemKind.IMPORTANT_DATE for item in items)
    assert items[0].important_date_id == important.id
    assert items[0].href == "/app/settings"
    assert items[0].description == "Penser au gâteau"
