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
from soot.db.models.equipment import Equipment
from soot.db.models.house import HouseMember
from soot.db.models.user import User

router = APIRouter(prefix="/equipment", tags=["Equipment"])

_DATE_FIELDS = ("purchased_at", "warranty_ends_at")


# ---------- Schemas ----------


class EquipmentCreate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    name: str = Field(min_length=2, max_length=100)
    location: str | None = Field(None, max_length=200)
    category: str | None = Field(None, max_length=100)
    purchased_at: date | None = None
    warranty_ends_at: date | None = None
    notes: str | None = Field(None, max_length=2000)


class EquipmentUpdate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    name: str | None = Field(None, min_length=2, max_length=100)
    location: str | None = Field(None, max_length=200)
    category: str | None = Field(None, max_length=100)
    purchased_at: date | None = None
    warranty_ends_at: date | None = None
    notes: str | None = Field(None, max_length=2000)


class EquipmentResponse(BaseModel):
    id: uuid.UUID
    house_id: uuid.UUID
    name: str
    location: str | None
    category: str | None
    purchased_at: datetime | None
    warranty_ends_at: datetime | None
    notes: str | None
    image_url: str | None
    is_image_generating: bool = False
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ---------- Helpers ----------


async def _get_equipment(db: AsyncSession, equipment_id: uuid.UUID, user: User) -> Equipment:
    equipment = await db.get(Equipment, equipment_id)
    if equipment is None:
        raise NotFoundError("Équipement introuvable")
    await require_membership(db, user.id, equipment.house_id)
    return equipment


async def _equipment_response(db: AsyncSession, equipment: Equipment) -> EquipmentResponse:
    generating = await generating_entity_ids(db, ImageEntityType.EQUIPMENT, [equipment.id])
    response = EquipmentResponse.model_validate(equipment)
    response.is_image_generating = equipment.id in generating
    return response


# ---------- Endpoints ----------


@router.post("", response_model=EquipmentResponse, status_code=201)
async def create_equipment(
    body: EquipmentCreate,
    current_user: User = Depends(get_current_user),
    membership: HouseMember = Depends(get_current_membership),
    db: AsyncSession = Depends(get_db),
):
    values = body.model_dump()
    for field in _DATE_FIELDS:
        values[field] = at_noon(values[field]) if values[field] else None

    equipment = Equipment(house_id=membership.house_id, **values)
    db.add(equipment)
    await db.flush()

    await request_image_generation(db, ImageEntityType.EQUIPMENT, equipment.id, owner=str(current_user.id))
    return await _equipment_response(db, equipment)


@router.get("", response_model=list[EquipmentResponse])
async def list_equipment(
    membership: HouseMember = Depends(get_current_membership),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Equipment)
        .where(Equipment.house_id == membership.house_id)
        .order_by(Equipment.name.asc())
    )
    equipments = list(result.scalars().all())
    generating = await generating_entity_ids(db, ImageEntityType.EQUIPMENT, [e.id for e in equipments])

    items = []
    for equipment in equipments:
        item = EquipmentResponse.model_validate(equipment)
        item.is_image_generating = equipment.id in generating
        items.append(item)
    return items


@router.get("/{equipment_id}", response_model=EquipmentResponse)
async def get_equipment(
    equipment_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    equipment = await _get_equipment(db, equipment_id, current_user)
    return await _equipment_response(db, equipment)


@router.patch("/{equipment_id}", response_model=EquipmentResponse)
async def update_equipment(
    equipment_id: uuid.UUID,
    body: EquipmentUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    equipment = await _get_equipment(db, equipment_id, current_user)
    updates = body.model_dump(exclude_unset=True)
    if not updates:
        raise BadRequestError("Au moins un champ doit être fourni")
    if "name" in updates:
        if not updates["name"]:
            raise BadRequestError("Le nom est obligatoire")
    for field in _DATE_FIELDS:
        if field in updates:
            updates[field] = at_noon(updates[field]) if updates[field] else None

    for field, value in updates.items():
        setattr(equipment, field, value)
    await db.flush()
    return await _equipment_response(db, equipment)


@router.delete("/{equipment_id}")
async def delete_equipment(
    equipment_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    equipment = await _get_equipment(db, equipment_id, current_user)
    await db.delete(equipment)
    await db.flush()
    return {"ok": True}


@router.post("/{equipment_id}/image", response_model=EquipmentResponse, status_code=202)
async def regenerate_image(
    equipment_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    equipment = await _get_equipment(db, equipment_id, current_user)
    await request_image_generation(db, ImageEntityType.EQUIPMENT, equipment.id, owner=str(current_user.id))
    return await _equipment_response(db, equipment)
