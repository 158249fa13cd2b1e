"""House setup, membership, invitations and the house's reference lists."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from enum import Enum

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from soot.api.deps import get_current_membership, get_current_user, get_db
from soot.common.exceptions import BadRequestError, NotFoundError
from soot.core.houses import service as houses
from soot.db.models.house import Animal, Category, House, HouseInvite, HouseMember, Person, Zone
from soot.db.models.user import User

router = APIRouter(prefix="/houses", tags=["Houses"])


# ---------- Schemas ----------


class HouseCreate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    name: str = Field(min_length=2, max_length=100)


class HouseResponse(BaseModel):
    id: uuid.UUID
    name: str
    created_by_id: uuid.UUID
    client_status: str
    is_onboarding_completed: bool
    icon_url: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class MemberResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    role: str
    email: str
    name: str | None
    image_url: str | None
    created_at: datetime


class InviteCreate(BaseModel):
    email: EmailStr


class InviteResponse(BaseModel):
    id: uuid.UUID
    email: str
    token: str
    url: str
    accepted_at: datetime | None
    revoked_at: datetime | None
    created_at: datetime


class HouseEntityKind(str, Enum):
    ZONES = "zones"
    CATEGORIES = "categories"
    ANIMALS = "animals"
    PEOPLE = "people"


class HouseEntityPayload(BaseModel):
    model_config = {"str_strip_whitespace": True}

    name: str | None = Field(None, min_length=1, max_length=100)
    species: str | None = Field(None, max_length=100)
    relation: str | None = Field(None, max_length=100)
    birth_date: date | None = None
    notes: str | None = Field(None, max_length=1000)


class HouseEntityResponse(BaseModel):
    id: uuid.UUID
    house_id: uuid.UUID
    name: str
    species: str | None = None
    relation: str | None = None
    birth_date: date | None = None
    notes: str | None = None

    model_config = {"from_attributes": True}


ENTITY_MODELS = {
    HouseEntityKind.ZONES: (Zone, {"name"}),
    HouseEntityKind.CATEGORIES: (Category, {"name"}),
    HouseEntityKind.ANIMALS: (Animal, {"name", "species", "birth_date", "notes"}),
    HouseEntityKind.PEOPLE: (Person, {"name", "relation", "birth_date", "notes"}),
}


def _invite_response(invite: HouseInvite) -> InviteResponse:
    return InviteResponse(
        id=invite.id,
        email=invite.email,
        token=invite.token,
        url=houses.build_invite_url(invite.token),
        accepted_at=invite.accepted_at,
        revoked_at=invite.revoked_at,
        created_at=invite.created_at,
    )


async def _members(db: AsyncSession, house_id: uuid.UUID) -> list[MemberResponse]:
    rows = await db.execute(
        select(HouseMember, User)
        .join(User, User.id == HouseMember.user_id)
        .where(HouseMember.house_id == house_id)
        .order_by(HouseMember.created_at.asc())
    )
    return [
        MemberResponse(
            id=member.id,
            user_id=user.id,
            role=member.role,
            email=user.email,
            name=user.name,
            image_url=user.image_url,
            created_at=member.created_at,
        )
        for member, user in rows.all()
    ]


# ---------- House ----------


@router.post("", response_model=HouseResponse, status_code=201)
async def create_house(
    body: HouseCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await houses.create_house(db, current_user, body.name)


@router.get("/current", response_model=HouseResponse)
async def get_current_house(
    membership: HouseMember = Depends(get_current_membership),
    db: AsyncSession = Depends(get_db),
):
    return await db.get(House, membership.house_id)


# ---------- Members ----------


@router.get("/current/members", response_model=list[MemberResponse])
async def list_members(
    membership: HouseMember = Depends(get_current_membership),
    db: AsyncSession = Depends(get_db),
):
    return await _members(db, membership.house_id)


@router.delete("/current/members/{member_id}")
async def remove_member(
    member_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    membership: HouseMember = Depends(get_current_membership),
    db: AsyncSession = Depends(get_db),
):
    await houses.require_owner(db, current_user.id, membership.house_id)
    house = await db.get(House, membership.house_id)
    await houses.remove_member(db, house, member_id)
    return {"ok": True}


# ---------- Invites ----------


@router.get("/current/invites", response_model=list[InviteResponse])
async def list_invites(
    membership: HouseMember = Depends(get_current_membership),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(HouseInvite)
        .where(HouseInvite.house_id == membership.house_id)
        .order_by(HouseInvite.created_at.desc())
    )
    return [_invite_response(invite) for invite in result.scalars().all()]


@router.post("/current/invites", response_model=InviteResponse, status_code=201)
async def create_invite(
    body: InviteCreate,
    current_user: User = Depends(get_current_user),
    membership: HouseMember = Depends(get_current_membership),
    db: AsyncSession = Depends(get_db),
):
    await houses.require_owner(db, current_user.id, membership.house_id)
    house = await db.get(House, membership.house_id)
    invite = await houses.create_invite(db, house, current_user, body.email)
    return _invite_response(invite)


@router.delete("/current/invites/{invite_id}", response_model=InviteResponse)
async def revoke_invite(
    invite_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    membership: HouseMember = Depends(get_current_membership),
    db: AsyncSession = Depends(get_db),
):
    await houses.require_owner(db, current_user.id, membership.house_id)
    invite = await houses.revoke_invite(db, membership.house_id, invite_id)
    return _invite_response(invite)


@router.post("/invites/{token}/accept")
async def accept_invite(
    token: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    membership = await houses.accept_invite(db, token, current_user)
    return {"ok": True, "house_id": str(membership.house_id)}


# ---------- Zones, categories, animals, people ----------


@router.get("/current/{kind}", response_model=list[HouseEntityResponse])
async def list_entities(
    kind: HouseEntityKind,
    membership: HouseMember = Depends(get_current_membership),
    db: AsyncSession = Depends(get_db),
):
    model, _ = ENTITY_MODELS[kind]
    result = await db.execute(
        select(model).where(model.house_id == membership.house_id).order_by(model.name.asc())
    )
    return result.scalars().all()


@router.post("/current/{kind}", response_model=HouseEntityResponse, status_code=201)
async def create_entity(
    kind: HouseEntityKind,
    body: HouseEntityPayload,
    membership: HouseMember = Depends(get_current_membership),
    db: AsyncSession = Depends(get_db),
):
    model, fields = ENTITY_MODELS[kind]
    if not body.name:
        raise BadRequestError("Le nom est obligatoire")

    values = body.model_dump(include=fields, exclude_none=True)
    entity = model(house_id=membership.house_id, **values)
    db.add(entity)
    await db.flush()
    return entity


async def _get_entity(db: AsyncSession, kind: HouseEntityKind, entity_id: uuid.UUID, house_id: uuid.UUID):
    model, _ = ENTITY_MODELS[kind]
    entity = await db.get(model, entity_id)
    if entity is None or entity.house_id != house_id:
        raise NotFoundError()
    return entity


@router.patch("/current/{kind}/{entity_id}", response_model=HouseEntityResponse)
async def update_entity(
    kind: HouseEntityKind,
    entity_id: uuid.UUID,
    body: HouseEntityPayload,
    membership: HouseMember = Depends(get_current_membership),
    db: AsyncSession = Depends(get_db),
):
    entity = await _get_entity(db, kind, entity_id, membership.house_id)
    _, fields = ENTITY_MODELS[kind]
    updates = body.model_dump(include=fields, exclude_unset=True)
    if not updates:
        raise BadRequestError("Au moins un champ doit être fourni")
    if "name" in updates and not updates["name"]:
        raise BadRequestError("Le nom est obligatoire")

    for field, value in updates.items():
        setattr(entity, field, value)
    await db.flush()
    return entity


@router.delete("/current/{kind}/{entity_id}")
async def delete_entity(
    kind: HouseEntityKind,
    entity_id: uuid.UUID,
    membership: HouseMember = Depends(get_current_membership),
    db: AsyncSession = Depends(get_db),
):
    entity = await _get_entity(db, kind, entity_id, membership.house_id)
    await db.delete(entity)
    await db.flush()
    return {"ok": True}
