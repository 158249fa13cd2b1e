"""
Remove duplicate house memberships so each user belongs to one house.

The oldest membership of every user is kept, the others are deleted. Run it
once before adding a unique constraint on ``house_members.user_id``.

Usage:
    python -m soot.scripts.dedupe_house_members
"""

import asyncio
import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from soot.db.models import HouseMember
from soot.db.session import async_session_factory


def find_duplicate_ids(rows: list[tuple[uuid.UUID, uuid.UUID]]) -> list[uuid.UUID]:
    """``rows`` are ``(membership_id, user_id)`` pairs, oldest first."""
    seen: set[uuid.UUID] = set()
    duplicates = []
    for membership_id, user_id in rows:
        if user_id in seen:
            duplicates.append(membership_id)
        else:
            seen.add(user_id)
    return duplicates


async def dedupe_house_members(session: AsyncSession) -> int:
    result = await session.execute(
        select(HouseMember.id, HouseMember.user_id).order_by(
            HouseMember.user_id.asc(), HouseMember.created_at.asc()
        )
    )
    duplicates = find_duplicate_ids([tuple(row) for row in result.all()])
    if not duplicates:
        return 0

    await session.execute(delete(HouseMember).where(HouseMember.id.in_(duplicates)))
    return len(duplicates)


async def main():
    async with async_session_factory() as session:
        removed = await dedupe_house_members(session)
        await session.commit()

    if removed:
        print(f"{removed} membership(s) en doublon supprimée(s).")
    else:
        print("Aucun doublon de membre trouvé.")


if __name__ == "__main__":
    asyncio.run(main())
