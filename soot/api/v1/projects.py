import uuid
from datetime import date, datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from soot.api.deps import get_current_membership, get_current_user, get_db
from soot.common.dates import at_noon
from soot.common.enums import ImageEntityType
from soot.common.exceptions import BadRequestError, NotFoundError
from soot.core.houses.service import require_membership
from soot.core.images.service import generating_entity_ids, request_image_generation
from soot.core.notifications.service import notify_project_created
from soot.db.models.house import HouseMember
from soot.db.models.project import Project
from soot.db.models.user import User

router = APIRouter(prefix="/projects", tags=["Projects"])


# ---------- Schemas ----------


class ProjectCreate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    name: str = Field(min_length=2, max_length=100)
    description: str | None = Field(None, max_length=2000)
    starts_at: date | None = None
    ends_at: date | None = None


class ProjectUpdate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    name: str | None = Field(None, min_length=2, max_length=100)
    description: str | None = Field(None, max_length=2000)
    starts_at: date | None = None
    ends_at: date | None = None


class ProjectResponse(BaseModel):
    id: uuid.UUID
    house_id: uuid.UUID
    name: str
    description: str | None
    starts_at: datetime | None
    ends_at: datetime | None
    image_url: str | None
    is_image_generating: bool = False
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ---------- Helpers ----------


def _check_period(starts_at: datetime | None, ends_at: datetime | None) -> None:
    if starts_at and ends_at and ends_at < starts_at:
        raise BadRequestError("La date de fin doit suivre la date de début")


async def _get_project(db: AsyncSession, project_id: uuid.UUID, user: User) -> Project:
    project = await db.get(Project, project_id)
    if project is None:
        raise NotFoundError("Projet introuvable")
    await require_membership(db, user.id, project.house_id)
    return project


async def _project_response(db: AsyncSession, project: Project) -> ProjectResponse:
    generating = await generating_entity_ids(db, ImageEntityType.PROJECT, [project.id])
    response = ProjectResponse.model_validate(project)
    response.is_image_generating = project.id in generating
    return response


# ---------- Endpoints ----------


@router.post("", response_model=ProjectResponse, status_code=201)
async def create_project(
    body: ProjectCreate,
    current_user: User = Depends(get_current_user),
    membership: HouseMember = Depends(get_current_membership),
    db: AsyncSession = Depends(get_db),
):
    starts_at = at_noon(body.starts_at) if body.starts_at else None
    ends_at = at_noon(body.ends_at) if body.ends_at else None
    _check_period(starts_at, ends_at)

    project = Project(
        house_id=membership.house_id,
        name=body.name,
        description=body.description,
        starts_at=starts_at,
        ends_at=ends_at,
    )
    db.add(project)
    await db.flush()

    await notify_project_created(db, membership.house_id, project.id, project.name, current_user.id)
    await request_image_generation(db, ImageEntityType.PROJECT, project.id, owner=str(current_user.id))
    return await _project_response(db, project)


@router.get("", response_model=list[ProjectResponse])
async def list_projects(
    membership: HouseMember = Depends(get_current_membership),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Project)
        .where(Project.house_id == membership.house_id)
        .order_by(Project.created_at.desc())
    )
    projects = list(result.scalars().all())
    generating = await generating_entity_ids(db, ImageEntityType.PROJECT, [p.id for p in projects])

    items = []
    for project in projects:
        item = ProjectResponse.model_validate(project)
        item.is_image_generating = project.id in generating
        items.append(item)
    return items


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    project = await _get_project(db, project_id, current_user)
    return await _project_response(db, project)


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: uuid.UUID,
    body: ProjectUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    project = await _get_project(db, project_id, current_user)
    updates = body.model_dump(exclude_unset=True)
    if not updates:
        raise BadRequestError("Au moins un champ doit être fourni")

    if "name" in updates:
        if not updates["name"]:
            raise BadRequestError("Le nom est obligatoire")
        project.name = updates["name"]
    if "description" in updates:
        project.description = updates["description"]
    for field in ("starts_at", "ends_at"):
        if field in updates:
            setattr(project, field, at_noon(updates[field]) if updates[field] else None)
    _check_period(project.starts_at, project.ends_at)

    await db.flush()
    return await _project_response(db, project)


@router.delete("/{project_id}")
async def delete_project(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    project = await _get_project(db, project_id, current_user)
    await db.delete(project)
    await db.flush()
    return {"ok": True}


@router.post("/{project_id}/image", response_model=ProjectResponse, status_code=202)
async def regenerate_image(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    project = await _get_project(db, project_id, current_user)
    await request_image_generation(db, ImageEntityType.PROJECT, project.id, owner=str(current_user.id))
    return await _project_response(db, project)
