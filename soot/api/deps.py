import uuid
from collections.abc import AsyncGenerator

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from soot.common.exceptions import UnauthorizedError
from soot.common.security import decode_token
from soot.core.houses.service import require_primary_membership
from soot.db.models.house import HouseMember
from soot.db.models.user import User
from soot.db.session import async_session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_current_user(
    authorization: str | None = Header(None, description="Bearer <token>"),
    db: AsyncSession = Depends(get_db),
) -> User:
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthorizedError()

    token = authorization[len("Bearer "):]
    try:
        payload = decode_token(token)
    except ValueError:
        raise UnauthorizedError("Session invalide ou expirée")

    if payload.get("type") != "access":
        raise UnauthorizedError("Session invalide ou expirée")

    try:
        user_id = uuid.UUID(payload.get("sub", ""))
    except ValueError:
        raise UnauthorizedError("Session invalide ou expirée")

    user = await db.get(User, user_id)
    if user is None or not user.is_active:
        raise UnauthorizedError()

    return user


async def get_current_membership(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> HouseMember:
    """Primary membership of the caller; 403 when onboarding is not done."""
    return await require_primary_membership(db, current_user.id)
