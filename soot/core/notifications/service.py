"""Notification service for creating and dispatching notifications."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta
from urllib.parse import urljoin

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from soot.common.dates import ensure_utc, utcnow
from soot.common.enums import NotificationType, TaskStatus
from soot.common.logging import get_logger
from soot.config import settings
from soot.core.notifications.settings import NotificationPreferences, should_send_email_now
from soot.db.models.house import House, HouseMember
from soot.db.models.notification import Notification, NotificationSettings
from soot.db.models.task import Task
from soot.db.models.user import User
from soot.integrations.sendgrid import EmailClient

logger = get_logger("notifications.service")

_ESCALATION_SOURCES = (
    NotificationType.TASK_ASSIGNED.value,
    NotificationType.TASK_REMINDER.value,
    NotificationType.TASK_STATUS.value,
)


async def get_preferences(db: AsyncSession, user_id: uuid.UUID) -> NotificationPreferences:
    record = await db.scalar(
        select(NotificationSettings).where(NotificationSettings.user_id == user_id)
    )
    return NotificationPreferences.from_record(record)


def resolve_notification_url(link_url: str | None) -> str:
    base_url = settings.APP_URL.rstrip("/")
    if not link_url:
        return base_url
    return urljoin(f"{base_url}/", link_url)


async def _send_notification_email(
    db: AsyncSession, notification: Notification, user: User
) -> None:
    link = resolve_notification_url(notification.link_url)
    greeting = f"Bonjour {user.name}," if user.name else "Bonjour,"
    summary = f"\n\n{notification.body}" if notification.body else ""

    html_parts = [f"<p>{greeting}</p>", f"<p><strong>{notification.title}</strong></p>"]
    if notification.body:
        html_parts.append(f"<p>{notification.body}</p>")
    html_parts.append(f'<p><a href="{link}">Ouvrir dans Soot</a></p>')

    result = await EmailClient().send_email(
        to=user.email,
        subject=notification.title,
        html_body="".join(html_parts),
        text_body=f"{greeting}\n\n{notification.title}{summary}\n\nOuvrir: {link}",
    )
    if result.get("status") == "sent":
        notification.email_sent_at = utcnow()
        await db.flush()
    else:
        logger.warning("Notification email not delivered: id=%s error=%s", notification.id, result.get("error"))


async def create_notification(
    db: AsyncSession,
    user_id: uuid.UUID,
    house_id: uuid.UUID,
    notification_type: NotificationType,
    title: str,
    body: str | None = None,
    link_url: str | None = None,
    task_id: uuid.UUID | None = None,
    dedupe_key: str | None = None,
    send_email: bool = False,
    bypass_quiet_hours: bool = False,
    bypass_schedule: bool = False,
    now: datetime | None = None,
) -> Notification:
    """Create an in-app notification and optionally email it.

    A notification whose ``dedupe_key`` already exists is returned as is and
    nothing is sent a second time.
    """
    if dedupe_key:
        existing = await db.scalar(select(Notification).where(Notification.dedupe_key == dedupe_key))
        if existing is not None:
            return existing

    notification = Notification(
        user_id=user_id,
        house_id=house_id,
        task_id=task_id,
        type=NotificationType(notification_type).value,
        title=title,
        body=body,
        link_url=link_url,
        dedupe_key=dedupe_key,
    )
    db.add(notification)
    await db.flush()
    logger.info("Created notification: type=%s user=%s title='%s'", notification.type, user_id, title)

    if send_email:
        prefs = await get_preferences(db, user_id)
        if should_send_email_now(
            prefs,
            now or datetime.now(),
            bypass_quiet_hours=bypass_quiet_hours,
            bypass_schedule=bypass_schedule,
        ):
            user = await db.get(User, user_id)
            if user is not None and user.email:
                await _send_notification_email(db, notification, user)
        else:
            logger.info("Email deferred by notification settings: user=%s", user_id)

    return notification


async def notify_task_assigned(db: AsyncSession, task: Task, actor_id: uuid.UUID) -> Notification | None:
    if task.assignee_id is None or task.assignee_id == actor_id:
        return None
    return await create_notification(
        db,
        user_id=task.assignee_id,
        house_id=task.house_id,
        task_id=task.id,
        notification_type=NotificationType.TASK_ASSIGNED,
        title=f"Nouvelle tâche assignée: {task.title}",
        body="Tu as une nouvelle tâche à prendre en charge.",
        link_url=f"/app/tasks/{task.id}",
        dedupe_key=f"task-assigned:{task.id}:{task.assignee_id}",
        send_email=True,
        bypass_quiet_hours=task.bypass_quiet_hours,
        bypass_schedule=task.bypass_schedule,
    )


async def notify_task_status_changed(
    db: AsyncSession, task: Task, recipient_id: uuid.UUID, actor_id: uuid.UUID
) -> Notification | None:
    if recipient_id == actor_id:
        return None
    status = TaskStatus(task.status)
    label = "terminée" if status == TaskStatus.DONE else "mise à jour"
    return await create_notification(
        db,
        user_id=recipient_id,
        house_id=task.house_id,
        task_id=task.id,
        notification_type=NotificationType.TASK_STATUS,
        title=f"Tâche {label}: {task.title}",
        body=f"La tâche a été marquée comme {label}.",
        link_url=f"/app/tasks/{task.id}",
        dedupe_key=f"task-status:{task.id}:{recipient_id}:{status.value}",
        send_email=True,
        bypass_quiet_hours=task.bypass_quiet_hours,
        bypass_schedule=task.bypass_schedule,
    )


async def notify_project_created(
    db: AsyncSession,
    house_id: uuid.UUID,
    project_id: uuid.UUID,
    project_name: str,
    actor_id: uuid.UUID,
) -> list[Notification]:
    member_ids = (
        await db.execute(select(HouseMember.user_id).where(HouseMember.house_id == house_id))
    ).scalars().all()

    created = []
    for user_id in dict.fromkeys(member_ids):
        if user_id == actor_id:
            continue
        created.append(
            await create_notification(
                db,
                user_id=user_id,
                house_id=house_id,
                notification_type=NotificationType.PROJECT_CREATED,
                title=f"Nouveau projet: {project_name}",
                body="Un nouveau projet a été ajouté à la maison.",
                link_url="/app/projects",
                dedupe_key=f"project-created:{project_id}:{user_id}",
                send_email=True,
            )
        )
    return created


async def notify_invite_accepted(
    db: AsyncSession, house_id: uuid.UUID, inviter_id: uuid.UUID, invitee_name: str | None
) -> Notification:
    return await create_notification(
        db,
        user_id=inviter_id,
        house_id=house_id,
        notification_type=NotificationType.INVITE_ACCEPTED,
        title="Invitation acceptée",
        body=f"{invitee_name} a rejoint la maison." if invitee_name else "Un membre a rejoint la maison.",
        link_url="/app/settings",
        dedupe_key=f"invite-accepted:{house_id}:{inviter_id}:{invitee_name or 'member'}",
        send_email=True,
    )


async def ensure_task_reminders(
    db: AsyncSession, house_id: uuid.UUID, today: date | None = None
) -> int:
    """Notify for every open task whose reminder day is today."""
    today = today or datetime.now().date()
    tasks = (
        await db.execute(
            select(Task).where(
                Task.house_id == house_id,
                Task.is_template.is_(False),
                Task.status != TaskStatus.DONE.value,
                Task.due_date.is_not(None),
            )
        )
    ).scalars().all()

    sent = 0
    for task in tasks:
        reminder_day = (task.due_date - timedelta(days=task.reminder_offset_days or 0)).date()
        if reminder_day != today:
            continue

        recipient_id = task.assignee_id or task.created_by_id
        await create_notification(
            db,
            user_id=recipient_id,
            house_id=house_id,
            task_id=task.id,
            notification_type=NotificationType.TASK_REMINDER,
            title=f"Rappel: {task.title}",
            body=f"Échéance prévue le {task.due_date:%d/%m/%Y}.",
            link_url=f"/app/tasks/{task.id}",
            dedupe_key=f"task-reminder:{task.id}:{recipient_id}:{reminder_day.isoformat()}",
            send_email=True,
            bypass_quiet_hours=task.bypass_quiet_hours,
            bypass_schedule=task.bypass_schedule,
        )
        sent += 1
    return sent


async def ensure_task_escalations(
    db: AsyncSession, house_id: uuid.UUID, now: datetime | None = None
) -> int:
    """Escalate assigned tasks whose latest notification stayed unread too long.

    The task creator and the house creator are told, never the assignee.
    """
    house = await db.get(House, house_id)
    if house is None:
        return 0
    now = now or utcnow()

    tasks = (
        await db.execute(
            select(Task).where(
                Task.house_id == house_id,
                Task.is_template.is_(False),
                Task.status != TaskStatus.DONE.value,
                Task.assignee_id.is_not(None),
            )
        )
    ).scalars().all()

    prefs_cache: dict[uuid.UUID, NotificationPreferences] = {}
    escalated = 0
    for task in tasks:
        if task.assignee_id not in prefs_cache:
            prefs_cache[task.assignee_id] = await get_preferences(db, task.assignee_id)
        prefs = prefs_cache[task.assignee_id]

        enabled = task.escalation_enabled if task.escalation_enabled is not None else prefs.escalation_enabled
        if not enabled:
            continue
        delay_hours = task.escalation_delay_hours or prefs.escalation_delay_hours
        if delay_hours <= 0:
            continue

        last = await db.scalar(
            select(Notification)
            .where(
                Notification.task_id == task.id,
                Notification.user_id == task.assignee_id,
                Notification.type.in_(_ESCALATION_SOURCES),
            )
            .order_by(Notification.created_at.desc())
            .limit(1)
        )
        if last is None or last.read_at is not None:
            continue
        if now - ensure_utc(last.created_at) < timedelta(hours=delay_hours):
            continue

        recipients = dict.fromkeys([task.created_by_id, house.created_by_id])
        recipients.pop(task.assignee_id, None)
        for recipient_id in recipients:
            await create_notification(
                db,
                user_id=recipient_id,
                house_id=house_id,
                task_id=task.id,
                notification_type=NotificationType.TASK_ESCALATION,
                title=f"Escalade: {task.title}",
                body="La tâche n'a pas été confirmée par la personne assignée.",
                link_url=f"/app/tasks/{task.id}",
                dedupe_key=f"task-escalation:{task.id}:{recipient_id}:{last.id}",
                send_email=True,
                bypass_quiet_hours=task.bypass_quiet_hours,
                bypass_schedule=task.bypass_schedule,
            )
            escalated += 1
    return escalated


async def unread_count(db: AsyncSession, user_id: uuid.UUID) -> int:
    return await db.scalar(
        select(func.count()).select_from(Notification).where(
            Notification.user_id == user_id, Notification.read_at.is_(None)
        )
    ) or 0
