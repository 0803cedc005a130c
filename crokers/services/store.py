"""
Live-row helpers shared by the entity services.

Every primary table is soft-deleted through ``deleted_at``; a row with a
tombstone is invisible to get/list/update.
"""

from typing import Optional, Type
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from crokers.utils.datetime_utils import utcnow
from crokers.utils.exceptions import NotFoundError


async def find_live(session: AsyncSession, model: Type, row_id: int):
    """Return the live row with this id, or None."""
    if row_id is None or row_id <= 0:
        return None
    result = await session.execute(
        select(model).where(model.id == row_id, model.deleted_at.is_(None))
    )
    return result.scalar_one_or_none()


async def get_live(session: AsyncSession, model: Type, row_id: int, label: Optional[str] = None):
    """
    Return the live row with this id.

    Raises:
        NotFoundError: If the id doesn't resolve or the row is tombstoned
    """
    row = await find_live(session, model, row_id)
    if row is None:
        raise NotFoundError(f"{label or model.__name__.lower()} not found")
    return row


async def soft_delete(session: AsyncSession, model: Type, row_id: int, label: Optional[str] = None) -> None:
    """Tombstone a live row and commit."""
    row = await get_live(session, model, row_id, label)
    row.deleted_at = utcnow()
    await session.commit()
