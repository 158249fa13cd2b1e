from celery import Celery
from celery.schedules import crontab

from soot.config import settings

app = Celery(
    "soot",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
)

app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="Europe/Paris",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_routes={
        "soot.tasks.image_tasks.*": {"queue": "images"},
        "soot.tasks.recurrence_tasks.*": {"queue": "housekeeping"},
        "soot.tasks.notification_tasks.*": {"queue": "housekeeping"},
    },
    beat_schedule={
        "materialise-recurring-tasks": {
            "task": "soot.tasks.recurrence_tasks.ensure_all_recurring_tasks",
            "schedule": crontab(hour=3, minute=0),
        },
        "send-task-reminders": {
            "task": "soot.tasks.notification_tasks.send_all_task_reminders",
            "schedule": crontab(hour=8, minute=0),
        },
        "run-task-escalations": {
            "task": "soot.tasks.notification_tasks.run_all_task_escalations",
            "schedule": crontab(minute=0),  # every hour
        },
    },
)

app.autodiscover_tasks(
    [
        "soot.tasks.image_tasks",
        "soot.tasks.recurrence_tasks",
        "soot.tasks.notification_tasks",
    ]
)
