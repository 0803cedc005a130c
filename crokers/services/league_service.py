"""
League CRUD.
"""

import logging
from typing import Dict, List, Optional, Tuple
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from crokers.database.models import League
from crokers.services.pagination import normalize_page, offset_for, search_pattern
from crokers.services.store import get_live, soft_delete
from crokers.utils.datetime_utils import isoformat
from crokers.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)


def _league_to_dict(league: League) -> Dict:
    return {
        "id": league.id,
        "name": league.name,
        "created_at": isoformat(league.created_at),
        "updated_at": isoformat(league.updated_at),
    }


def _clean_name(name: Optional[str]) -> str:
    if name is None or not name.strip():
        raise ValidationError("name is required")
    return name.strip()


async def create_league(session: AsyncSession, name: str) -> Dict:
    """Create a league."""
    league = League(name=_clean_name(name))
    session.add(league)
    await session.commit()
    await session.refresh(league)
    logger.info(f"Created league {league.id} ({league.name})")
    return _league_to_dict(league)


async def get_league(session: AsyncSession, league_id: int) -> Dict:
    """Get a live league by ID. Raises NotFoundError."""
    league = await get_live(session, League, league_id, "league")
    return _league_to_dict(league)


async def update_league(session: AsyncSession, league_id: int, fields: Dict) -> Dict:
    """Apply a partial update; only keys present in ``fields`` are touched."""
    league = await get_live(session, League, league_id, "league")
    if "name" in fields:
        league.name = _clean_name(fields["name"])
    await session.commit()
    await session.refresh(league)
    return _league_to_dict(league)


async def delete_league(session: AsyncSession, league_id: int) -> None:
    await soft_delete(session, League, league_id, "league")
    logger.info(f"Deleted league {league_id}")


async def list_leagues(
    session: AsyncSession,
    q: Optional[str] = None,
    page: Optional[int] = None,
    size: Optional[int] = None,
) -> Tuple[List[Dict], int]:
    """List live leagues, newest first. Returns (items, total)."""
    page, size = normalize_page(page, size)
    conditions = [League.deleted_at.is_(None)]
    pattern = search_pattern(q)
    if pattern:
        conditions.append(func.lower(League.name).like(pattern))

    total = (await session.execute(
        select(func.count(League.id)).where(*conditions)
    )).scalar() or 0

    result = await session.execute(
        select(League)
        .where(*conditions)
        .order_by(League.id.desc())
        .offset(offset_for(page, size))
        .limit(size)
    )
    logger.debug(f"list_leagues q={q!r} page={page} size={size} total={total}")
    return [_league_to_dict(league) for league in result.scalars().all()], total
