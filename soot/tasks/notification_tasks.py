import asyncio

from soot.common.logging import get_logger
from soot.tasks.celery_app import app

logger = get_logger("tasks.notifications")


def _run_async(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


async def _active_house_ids():
    from sqlalchemy import select

    from soot.common.enums import ClientStatus
    from soot.db.models.house import House
    from soot.db.session import async_session_factory

    async with async_session_factory() as db:
        result = await db.execute(
            select(House.id).where(House.client_status == ClientStatus.ACTIVE.value)
        )
        return [str(house_id) for house_id in result.scalars().all()]


@app.task(name="soot.tasks.notification_tasks.send_task_reminders")
def send_task_reminders(house_id: str):
    async def _send():
        import uuid

        from soot.core.notifications.service import ensure_task_reminders
        from soot.db.session import async_session_factory

        async with async_session_factory() as db:
            try:
                sent = await ensure_task_reminders(db, uuid.UUID(house_id))
                await db.commit()
                logger.info("Processed %d reminder(s) for house %s", sent, house_id)
                return sent
            except Exception as e:
                await db.rollback()
                logger.error("Reminders failed for house %s: %s", house_id, e)
                raise

    return _run_async(_send())


@app.task(name="soot.tasks.notification_tasks.run_task_escalations")
def run_task_escalations(house_id: str):
    async def _escalate():
        import uuid

        from soot.core.notifications.service import ensure_task_escalations
        from soot.db.session import async_session_factory

        async with async_session_factory() as db:
            try:
                escalated = await ensure_task_escalations(db, uuid.UUID(house_id))
                await db.commit()
                return escalated
            except Exception as e:
                await db.rollback()
                logger.error("Escalations failed for house %s: %s", house_id, e)
                raise

    return _run_async(_escalate())


@app.task(name="soot.tasks.notification_tasks.send_all_task_reminders")
def send_all_task_reminders():
    """Celery Beat task: fan reminders out per active house."""
    house_ids = _run_async(_active_house_ids())
    for house_id in house_ids:
        send_task_reminders.delay(house_id)
    logger.info("Queued reminders for %d houses", len(house_ids))


@app.task(name="soot.tasks.notification_tasks.run_all_task_escalations")
def run_all_task_escalations():
    """Celery Beat task: fan escalations out per active house."""
    house_ids = _run_async(_active_house_ids())
    for house_id in house_ids:
        run_task_escalations.delay(house_id)
    logger.info("Queued escalations for %d houses", len(house_ids))
