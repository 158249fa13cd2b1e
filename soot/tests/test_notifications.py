import uuid
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from soot.common.enums import NotificationType, TaskStatus
from soot.core.notifications.service import (
    create_notification,
    ensure_task_escalations,
    ensure_task_reminders,
    resolve_notification_url,
)
from soot.db.models.notification import Notification, NotificationSettings
from soot.db.models.task import Task


async def _notifications(db_session, user_id, notification_type=None):
    query = select(Notification).where(Notification.user_id == user_id)
    if notification_type is not None:
        query = query.where(Notification.type == notification_type.value)
    return list((await db_session.execute(query)).scalars().all())


def test_resolve_notification_url():
    assert resolve_notification_url(None) == "http://localhost:3005"
    assert resolve_notification_url("/app/tasks/1") == "http://localhost:3005/app/tasks/1"


# --- create_notification ---


@pytest.mark.asyncio
async def test_dedupe_key_returns_existing(db_session, owner_user, house, mock_email):
    first = await create_notification(
        db_session,
        user_id=owner_user.id,
        house_id=house.id,
        notification_type=NotificationType.TASK_REMINDER,
        title="Rappel",
        dedupe_key="reminder-1",
        send_email=True,
    )
    second = await create_notification(
        db_session,
        user_id=owner_user.id,
        house_id=house.id,
        notification_type=NotificationType.TASK_REMINDER,
        title="Rappel",
        dedupe_key="reminder-1",
        send_email=True,
    )

    assert first.id == second.id
    assert len(await _notifications(db_session, owner_user.id)) == 1
    assert mock_email.await_count == 1
    assert first.email_sent_at is not None


@pytest.mark.asyncio
async def test_email_deferred_during_quiet_hours(db_session, owner_user, house, mock_email):
    db_session.add(NotificationSettings(user_id=owner_user.id, quiet_hours_enabled=True))
    await db_session.flush()

    notification = await create_notification(
        db_session,
        user_id=owner_user.id,
        house_id=house.id,
        notification_type=NotificationType.TASK_STATUS,
        title="Tâche terminée",
        send_email=True,
        now=datetime(2025, 3, 12, 23, 30),
    )

    assert mock_email.await_count == 0
    assert notification.email_sent_at is None


@pytest.mark.asyncio
async def test_email_greets_user_by_name(db_session, owner_user, house, mock_email):
    await create_notification(
        db_session,
        user_id=owner_user.id,
        house_id=house.id,
        notification_type=NotificationType.PROJECT_CREATED,
        title="Nouveau projet: Cuisine",
        link_url="/app/projects",
        send_email=True,
        now=datetime(2025, 3, 12, 10, 0),
    )

    kwargs = mock_email.await_args.kwargs
    assert kwargs["to"] == owner_user.email
    assert kwargs["subject"] == "Nouveau projet: Cuisine"
    assert "Bonjour Camille," in kwargs["html_body"]
    assert "http://localhost:3005/app/projects" in kwargs["html_body"]


# --- reminders ---


@pytest.mark.asyncio
async def test_reminders_fire_on_reminder_day(db_session, owner_user, member_user, house):
    task = Task(
        house_id=house.id,
        title="Ramoner la cheminée",
        due_date=datetime(2025, 10, 15, 12),
        reminder_offset_days=3,
        assignee_id=member_user.id,
        created_by_id=owner_user.id,
    )
    db_session.add(task)
    await db_session.flush()

    assert await ensure_task_reminders(db_session, house.id, today=date(2025, 10, 11)) == 0
    assert await ensure_task_reminders(db_session, house.id, today=date(2025, 10, 12)) == 1
    await ensure_task_reminders(db_session, house.id, today=date(2025, 10, 12))

    reminders = await _notifications(db_session, member_user.id, NotificationType.TASK_REMINDER)
    assert len(reminders) == 1
    assert reminders[0].title == "Rappel: Ramoner la cheminée"
    assert reminders[0].body == "Échéance prévue le 15/10/2025."
    assert reminders[0].task_id == task.id


@pytest.mark.asyncio
async def test_done_tasks_get_no_reminder(db_session, owner_user, house):
    db_session.add(
        Task(
            house_id=house.id,
            title="Déjà fait",
            status=TaskStatus.DONE.value,
            due_date=datetime(2025, 10, 15, 12),
            created_by_id=owner_user.id,
        )
    )
    await db_session.flush()
    assert await ensure_task_reminders(db_session, house.id, today=date(2025, 10, 15)) == 0


# --- escalations ---


async def _assigned_task(db_session, house, creator, assignee, hours_ago):
    task = Task(
        house_id=house.id,
        title="Réparer le portail",
        due_date=datetime(2025, 10, 20, 12),
        assignee_id=assignee.id,
        created_by_id=creator.id,
    )
    db_session.add(task)
    await db_session.flush()
    notification = Notification(
        user_id=assignee.id,
        house_id=house.id,
        task_id=task.id,
        type=NotificationType.TASK_ASSIGNED.value,
        title=f"Nouvelle tâche assignée: {task.title}",
        dedupe_key=f"task-assigned:{task.id}:{assignee.id}",
        created_at=datetime(2025, 10, 10, 8, tzinfo=timezone.utc) - timedelta(hours=hours_ago),
    )
    db_session.add(notification)
    await db_session.flush()
    return task, notification


@pytest.mark.asyncio
async def test_unread_assignment_escalates_to_creator(db_session, owner_user, member_user, house):
    task, _ = await _assigned_task(db_session, house, owner_user, member_user, hours_ago=30)

    await ensure_task_escalations(db_session, house.id, now=datetime(2025, 10, 10, 8, tzinfo=timezone.utc))

    escalations = await _notifications(db_session, owner_user.id, NotificationType.TASK_ESCALATION)
    assert len(escalations) == 1
    assert escalations[0].title == "Escalade: Réparer le portail"
    assert escalations[0].task_id == task.id
    assert await _notifications(db_session, member_user.id, NotificationType.TASK_ESCALATION) == []


@pytest.mark.asyncio
async def test_recent_or_read_notifications_do_not_escalate(db_session, owner_user, member_user, house):
    now = datetime(2025, 10, 10, 8, tzinfo=timezone.utc)
    await _assigned_task(db_session, house, owner_user, member_user, hours_ago=2)
    _, read = await _assigned_task(db_session, house, owner_user, member_user, hours_ago=48)
    read.read_at = now
    await db_session.flush()

    assert await ensure_task_escalations(db_session, house.id, now=now) == 0


@pytest.mark.asyncio
async def test_escalation_respects_disabled_setting(db_session, owner_user, member_user, house):
    db_session.add(NotificationSettings(user_id=member_user.id, escalation_enabled=False))
    await _assigned_task(db_session, house, owner_user, member_user, hours_ago=72)

    now = datetime(2025, 10, 10, 8, tzinfo=timezone.utc)
    assert await ensure_task_escalations(db_session, house.id, now=now) == 0


@pytest.mark.asyncio
async def test_escalation_unknown_house(db_session):
    assert await ensure_task_escalations(db_session, uuid.uuid4()) == 0


# --- API ---


@pytest.mark.asyncio
async def test_list_notifications_empty(client, auth_headers):
    response = await client.get("/api/v1/notifications", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 0
    assert data["unread_count"] == 0


@pytest.mark.asyncio
async def test_mark_notification_read(client, auth_headers, owner_user, house, db_session):
    notification = Notification(
        user_id=owner_user.id,
        house_id=house.id,
        type=NotificationType.TASK_STATUS.value,
        title="Tâche terminée: Vaisselle",
    )
    db_session.add(notification)
    await db_session.flush()

    response = await client.post(f"/api/v1/notifications/{notification.id}/read", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["read_at"] is not None


@pytest.mark.asyncio
async def test_cannot_read_someone_elses_notification(client, member_headers, owner_user, house, db_session):
    notification = Notification(
        user_id=owner_user.id,
        house_id=house.id,
        type=NotificationType.TASK_STATUS.value,
        title="Privée",
    )
    db_session.add(notification)
    await db_session.flush()

    response = await client.post(f"/api/v1/notifications/{notification.id}/read", headers=member_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_mark_all_read(client, auth_headers, owner_user, house, db_session):
    for i in range(3):
        db_session.add(
            Notification(
                user_id=owner_user.id,
                house_id=house.id,
                type=NotificationType.TASK_REMINDER.value,
                title=f"Rappel #{i}",
            )
        )
    await db_session.flush()

    response = await client.post("/api/v1/notifications/read-all", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["updated"] == 3

    response = await client.get("/api/v1/notifications", headers=auth_headers)
    assert response.json()["unread_count"] == 0


@pytest.mark.asyncio
async def test_notification_pagination(client, auth_headers, owner_user, house, db_session):
    for i in range(5):
        db_session.add(
            Notification(
                user_id=owner_user.id,
                house_id=house.id,
                type=NotificationType.TASK_REMINDER.value,
                title=f"Rappel #{i}",
            )
        )
    await db_session.flush()

    response = await client.get(
        "/api/v1/notifications", headers=auth_headers, params={"page": 2, "page_size": 2}
    )
    data = response.json()
    assert data["total"] == 5
    assert data["total_pages"] == 3
    assert len(data["items"]) == 2


@pytest.mark.asyncio
async def test_settings_round_trip(client, auth_headers):
    response = await client.get("/api/v1/notifications/settings", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["quiet_hours_start"] == "22:00"
    assert response.json()["schedule_days"] == ["MON", "TUE", "WED", "THU", "FRI"]

    payload = {
        "quiet_hours_enabled": True,
        "quiet_hours_start": "21:30",
        "quiet_hours_end": "06:45",
        "schedule_enabled": True,
        "schedule_days": ["SAT", "SUN"],
        "schedule_start": "09:00",
        "schedule_end": "12:00",
        "escalation_enabled": False,
        "escalation_delay_hours": 6,
    }
    response = await client.put("/api/v1/notifications/settings", headers=auth_headers, json=payload)
    assert response.status_code == 200

    response = await client.get("/api/v1/notifications/settings", headers=auth_headers)
    assert response.json() == payload


@pytest.mark.asyncio
async def test_settings_reject_invalid_time(client, auth_headers):
    response = await client.put(
        "/api/v1/notifications/settings",
        headers=auth_headers,
        json={
            "quiet_hours_enabled": True,
            "quiet_hours_start": "25:00",
            "quiet_hours_end": "07:00",
            "schedule_enabled": False,
            "schedule_days": [],
            "schedule_start": "08:00",
            "schedule_end": "18:00",
            "escalation_enabled": True,
            "escalation_delay_hours": 24,
        },
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Heure invalide, format attendu HH:MM"}
