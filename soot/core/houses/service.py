"""House membership, access checks and invitations."""

from __future__ import annotations

import secrets
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from soot.common.dates import utcnow
from soot.common.enums import ClientStatus, MemberRole
from soot.common.exceptions import BadRequestError, NotFoundError, PermissionDeniedError
from soot.common.logging import get_logger
from soot.config import settings
from soot.core.notifications.service import notify_invite_accepted
from soot.db.models.house import Category, House, HouseInvite, HouseMember, Zone
from soot.db.models.user import User
from soot.integrations.sendgrid import EmailClient

logger = get_logger("houses.service")

DEFAULT_ZONES = ("Intérieur", "Jardin")
DEFAULT_CATEGORIES = ("Entretien", "Bricolage", "Administratif")

NO_HOUSE_MESSAGE = "Aucune maison associée à cet utilisateur"
INACTIVE_HOUSE_MESSAGE = "Client désactivé"
ONBOARDING_MESSAGE = "Onboarding maison incomplet"
HOUSE_ACCESS_DENIED_MESSAGE = "Accès refusé à cette maison"


async def get_membership(
    db: AsyncSession, user_id: uuid.UUID, house_id: uuid.UUID
) -> HouseMember | None:
    return await db.scalar(
        select(HouseMember)
        .where(HouseMember.user_id == user_id, HouseMember.house_id == house_id)
        .order_by(HouseMember.created_at.asc())
        .limit(1)
    )


async def require_membership(
    db: AsyncSession,
    user_id: uuid.UUID,
    house_id: uuid.UUID,
    allow_inactive: bool = False,
    detail: str = "Accès refusé à cette ressource",
) -> HouseMember:
    membership = await get_membership(db, user_id, house_id)
    if membership is None:
        raise PermissionDeniedError(detail)
    house = await db.get(House, house_id)
    if not allow_inactive and house.client_status == ClientStatus.INACTIVE.value:
        raise PermissionDeniedError(INACTIVE_HOUSE_MESSAGE)
    return membership


async def require_primary_membership(
    db: AsyncSession,
    user_id: uuid.UUID,
    allow_inactive: bool = False,
    allow_incomplete_onboarding: bool = False,
) -> HouseMember:
    """The user's oldest membership; that house is the one the app works on."""
    membership = await db.scalar(
        select(HouseMember)
        .where(HouseMember.user_id == user_id)
        .order_by(HouseMember.created_at.asc())
        .limit(1)
    )
    if membership is None:
        raise PermissionDeniedError(NO_HOUSE_MESSAGE)
    house = await db.get(House, membership.house_id)
    if not allow_inactive and house.client_status == ClientStatus.INACTIVE.value:
        raise PermissionDeniedError(INACTIVE_HOUSE_MESSAGE)
    if not allow_incomplete_onboarding and not house.is_onboarding_completed:
        raise PermissionDeniedError(ONBOARDING_MESSAGE)
    return membership


async def require_owner(db: AsyncSession, user_id: uuid.UUID, house_id: uuid.UUID) -> HouseMember:
    membership = await require_membership(db, user_id, house_id)
    house = await db.get(House, house_id)
    if membership.role != MemberRole.OWNER.value and house.created_by_id != user_id:
        raise PermissionDeniedError("Action réservée au propriétaire de la maison")
    return membership


async def resolve_house_id(
    db: AsyncSession, user_id: uuid.UUID, requested: uuid.UUID | None = None
) -> uuid.UUID:
    if requested is None:
        membership = await require_primary_membership(db, user_id)
        return membership.house_id
    if await get_membership(db, user_id, requested) is None:
        raise PermissionDeniedError(HOUSE_ACCESS_DENIED_MESSAGE)
    return requested


async def create_house(db: AsyncSession, user: User, name: str) -> House:
    house = House(name=name.strip(), created_by_id=user.id)
    db.add(house)
    await db.flush()

    db.add(HouseMember(house_id=house.id, user_id=user.id, role=MemberRole.OWNER.value))
    db.add_all(Zone(house_id=house.id, name=zone) for zone in DEFAULT_ZONES)
    db.add_all(Category(house_id=house.id, name=category) for category in DEFAULT_CATEGORIES)
    await db.flush()

    logger.info("House created: id=%s owner=%s", house.id, user.id)
    return house


async def list_members(db: AsyncSession, house_id: uuid.UUID) -> list[HouseMember]:
    result = await db.execute(
        select(HouseMember)
        .where(HouseMember.house_id == house_id)
        .order_by(HouseMember.created_at.asc())
    )
    return list(result.scalars().all())


async def remove_member(db: AsyncSession, house: House, member_id: uuid.UUID) -> None:
    member = await db.get(HouseMember, member_id)
    if member is None or member.house_id != house.id:
        raise NotFoundError("Membre introuvable")
    if member.user_id == house.created_by_id:
        raise BadRequestError("Le propriétaire principal ne peut pas être retiré")
    await db.delete(member)
    await db.flush()


def build_invite_url(token: str) -> str:
    return f"{settings.APP_URL.rstrip('/')}/invite/{token}"


async def create_invite(db: AsyncSession, house: House, inviter: User, email: str) -> HouseInvite:
    invite = HouseInvite(
        house_id=house.id,
        invited_by_id=inviter.id,
        email=email.strip().lower(),
        token=secrets.token_urlsafe(24),
    )
    db.add(invite)
    await db.flush()

    link = build_invite_url(invite.token)
    inviter_label = inviter.name or inviter.email
    await EmailClient().send_email(
        to=invite.email,
        subject=f"Invitation à rejoindre {house.name}",
        html_body=(
            f"<p>{inviter_label} t'invite à rejoindre la maison <strong>{house.name}</strong>.</p>"
            f'<p><a href="{link}">Accepter l\'invitation</a></p>'
        ),
        text_body=f"{inviter_label} t'invite à rejoindre la maison {house.name}.\n\n{link}",
    )
    logger.info("Invite sent: house=%s email=%s", house.id, invite.email)
    return invite


async def revoke_invite(db: AsyncSession, house_id: uuid.UUID, invite_id: uuid.UUID) -> HouseInvite:
    invite = await db.get(HouseInvite, invite_id)
    if invite is None or invite.house_id != house_id:
        raise NotFoundError("Invitation introuvable")
    invite.revoked_at = utcnow()
    await db.flush()
    return invite


async def accept_invite(db: AsyncSession, token: str, user: User) -> HouseMember:
    invite = await db.scalar(select(HouseInvite).where(HouseInvite.token == token))
    if invite is None or invite.revoked_at is not None:
        raise NotFoundError("Invitation introuvable")
    if invite.accepted_at is not None:
        raise BadRequestError("Invitation déjà utilisée")
    if invite.email != user.email.lower():
        raise PermissionDeniedError("Cette invitation est destinée à une autre adresse email")

    membership = await get_membership(db, user.id, invite.house_id)
    if membership is None:
        membership = HouseMember(house_id=invite.house_id, user_id=user.id, role=MemberRole.MEMBER.value)
        db.add(membership)

    invite.accepted_at = utcnow()
    await db.flush()
    await notify_invite_accepted(db, invite.house_id, invite.invited_by_id, user.name or user.email)
    logger.info("Invite accepted: house=%s user=%s", invite.house_id, user.id)
    return membership
