"""Track illustration generation per task, project or equipment.

A PENDING job stands in for "an image is being generated". Jobs carry an
expiry so a worker that died mid-generation stops blocking the entity once
``expires_at`` has passed.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from soot.common.dates import ensure_utc, utcnow
from soot.common.enums import ImageEntityType, ImageJobStatus
from soot.common.exceptions import NotFoundError
from soot.common.logging import get_logger
from soot.config import settings
from soot.db.models.equipment import Equipment
from soot.db.models.image_job import ImageJob
from soot.db.models.project import Project
from soot.db.models.task import Task
from soot.tasks.image_tasks import generate_entity_image

logger = get_logger("images.service")

ENTITY_MODELS = {
    ImageEntityType.TASK: Task,
    ImageEntityType.PROJECT: Project,
    ImageEntityType.EQUIPMENT: Equipment,
}


def is_generating(job: ImageJob | None, now: datetime | None = None) -> bool:
    if job is None or job.status != ImageJobStatus.PENDING.value:
        return False
    return ensure_utc(job.expires_at) > (now or utcnow())


def build_prompt(entity_type: ImageEntityType, entity) -> str:
    subject = getattr(entity, "title", None) or getattr(entity, "name", "")
    details = getattr(entity, "description", None) or getattr(entity, "notes", None)
    kind = {
        ImageEntityType.TASK: "une tâche ménagère",
        ImageEntityType.PROJECT: "un projet pour la maison",
        ImageEntityType.EQUIPMENT: "un équipement de la maison",
    }[entity_type]
    prompt = f"Illustration douce et minimaliste représentant {kind}: {subject}."
    if details:
        prompt += f" Contexte: {details}"
    return prompt


async def _latest_pending(
    db: AsyncSession, entity_type: ImageEntityType, entity_id: uuid.UUID
) -> ImageJob | None:
    return await db.scalar(
        select(ImageJob)
        .where(
            ImageJob.entity_type == entity_type.value,
            ImageJob.entity_id == entity_id,
            ImageJob.status == ImageJobStatus.PENDING.value,
        )
        .order_by(ImageJob.created_at.desc())
        .limit(1)
    )


async def start_image_job(
    db: AsyncSession,
    entity_type: ImageEntityType | str,
    entity_id: uuid.UUID,
    owner: str,
    now: datetime | None = None,
) -> tuple[ImageJob, bool]:
    """Return ``(job, created)``; an unexpired pending job is reused."""
    entity_type = ImageEntityType(entity_type)
    now = now or utcnow()

    entity = await db.get(ENTITY_MODELS[entity_type], entity_id)
    if entity is None:
        raise NotFoundError()

    pending = await _latest_pending(db, entity_type, entity_id)
    if is_generating(pending, now):
        return pending, False

    job = ImageJob(
        entity_type=entity_type.value,
        entity_id=entity_id,
        status=ImageJobStatus.PENDING.value,
        owner=owner,
        prompt=build_prompt(entity_type, entity),
        expires_at=now + timedelta(minutes=settings.IMAGE_JOB_TTL_MINUTES),
    )
    db.add(job)
    await db.flush()
    logger.info("Image job %s started for %s=%s by %s", job.id, entity_type.value, entity_id, owner)
    return job, True


async def complete_image_job(db: AsyncSession, job_id: uuid.UUID, image_url: str) -> ImageJob:
    job = await db.get(ImageJob, job_id)
    if job is None:
        raise NotFoundError("Tâche de génération introuvable")

    entity = await db.get(ENTITY_MODELS[ImageEntityType(job.entity_type)], job.entity_id)
    if entity is not None:
        entity.image_url = image_url

    job.status = ImageJobStatus.SUCCEEDED.value
    job.finished_at = utcnow()
    job.error = None
    await db.flush()
    logger.info("Image job %s succeeded: %s", job.id, image_url)
    return job


async def fail_image_job(db: AsyncSession, job_id: uuid.UUID, error: str) -> ImageJob:
    job = await db.get(ImageJob, job_id)
    if job is None:
        raise NotFoundError("Tâche de génération introuvable")

    job.status = ImageJobStatus.FAILED.value
    job.finished_at = utcnow()
    job.error = error
    await db.flush()
    logger.warning("Image job %s failed: %s", job.id, error)
    return job


async def generating_entity_ids(
    db: AsyncSession,
    entity_type: ImageEntityType | str,
    entity_ids: Iterable[uuid.UUID],
    now: datetime | None = None,
) -> set[uuid.UUID]:
    ids = list(entity_ids)
    if not ids:
        return set()
    now = now or utcnow()

    jobs = (
        await db.execute(
            select(ImageJob).where(
                ImageJob.entity_type == ImageEntityType(entity_type).value,
                ImageJob.entity_id.in_(ids),
                ImageJob.status == ImageJobStatus.PENDING.value,
            )
        )
    ).scalars().all()
    return {job.entity_id for job in jobs if is_generating(job, now)}


async def request_image_generation(
    db: AsyncSession,
    entity_type: ImageEntityType | str,
    entity_id: uuid.UUID,
    owner: str,
) -> ImageJob:
    """Start (or reuse) a job and hand new ones to the worker."""
    job, created = await start_image_job(db, entity_type, entity_id, owner)
    if created:
        generate_entity_image.delay(str(job.id))
    return job
