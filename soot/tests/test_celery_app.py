from soot.tasks.celery_app import app


def test_beat_schedule_covers_housekeeping_jobs():
    tasks = {entry["task"] for entry in app.conf.beat_schedule.values()}
    assert tasks == {
        "soot.tasks.recurrence_tasks.ensure_all_recurring_tasks",
        "soot.tasks.notification_tasks.send_all_task_reminders",
        "soot.tasks.notification_tasks.run_all_task_escalations",
    }


def test_image_tasks_have_their_own_queue():
    assert app.conf.task_routes["soot.tasks.image_tasks.*"] == {"queue": "images"}


def test_beat_runs_on_paris_time():
    assert app.conf.timezone == "Europe/Paris"
    assert app.conf.enable_utc is True
