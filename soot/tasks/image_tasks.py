import asyncio
import uuid

from soot.common.logging import get_logger
from soot.tasks.celery_app import app

logger = get_logger("tasks.images")


def _run_async(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class ImageJobNotReady(Exception):
    """The job row is not visible yet; the request may not have committed."""


@app.task(name="soot.tasks.image_tasks.generate_entity_image", bind=True, max_retries=3)
def generate_entity_image(self, job_id: str):
    logger.info("Generating image for job %s", job_id)

    async def _generate():
        from soot.common.enums import ImageEntityType, ImageJobStatus
        from soot.common.exceptions import ExternalServiceError
        from soot.core.images.service import complete_image_job, fail_image_job
        from soot.db.models.image_job import ImageJob
        from soot.db.session import async_session_factory
        from soot.integrations.image_client import ImageClient

        async with async_session_factory() as db:
            job = await db.get(ImageJob, uuid.UUID(job_id))
            if job is None:
                raise ImageJobNotReady(job_id)
            if job.status != ImageJobStatus.PENDING.value:
                logger.info("Image job %s already %s, skipping", job_id, job.status)
                return job.status

            folder = f"{ImageEntityType(job.entity_type).value}-images"
            try:
                image_url = await ImageClient().generate(job.prompt or "", folder)
            except ExternalServiceError as e:
                await fail_image_job(db, job.id, e.detail)
                await db.commit()
                return ImageJobStatus.FAILED.value

            await complete_image_job(db, job.id, image_url)
            await db.commit()
            return ImageJobStatus.SUCCEEDED.value

    try:
        return _run_async(_generate())
    except ImageJobNotReady as exc:
        raise self.retry(exc=exc, countdown=5)
