import asyncio

from soot.common.logging import get_logger
from soot.tasks.celery_app import app

logger = get_logger("tasks.recurrence")


def _run_async(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@app.task(name="soot.tasks.recurrence_tasks.ensure_house_recurring_tasks")
def ensure_house_recurring_tasks(house_id: str):
    async def _ensure():
        import uuid

        from soot.core.recurrence.service import ensure_recurring_tasks
        from soot.db.session import async_session_factory

        async with async_session_factory() as db:
            try:
                created = await ensure_recurring_tasks(db, uuid.UUID(house_id))
                await db.commit()
                return created
            except Exception as e:
                await db.rollback()
                logger.error("Recurring task generation failed for house %s: %s", house_id, e)
                raise

    return _run_async(_ensure())


@app.task(name="soot.tasks.recurrence_tasks.ensure_all_recurring_tasks")
def ensure_all_recurring_tasks():
    """Celery Beat task: top up every active house's recurring series."""

    async def _queue_all():
        from sqlalchemy import select

        from soot.common.enums import ClientStatus
        from soot.db.models.house import House
        from soot.db.session import async_session_factory

        async with async_session_factory() as db:
            result = await db.execute(
                select(House.id).where(House.client_status == ClientStatus.ACTIVE.value)
            )
            house_ids = result.scalars().all()

        for house_id in house_ids:
            ensure_house_recurring_tasks.delay(str(house_id))
        logger.info("Queued recurring task generation for %d houses", len(house_ids))

    _run_async(_queue_all())
