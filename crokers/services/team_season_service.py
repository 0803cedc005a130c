"""
Team <-> season links.

Links are keyed on (team_id, season_id). Unlinking tombstones the row and
linking again revives it instead of inserting a second one.
"""

import logging
from typing import Dict, List, Optional, Tuple
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from crokers.database.models import Season, Team, TeamSeason
from crokers.services.pagination import normalize_page, offset_for
from crokers.services.season_service import season_to_dict
from crokers.services.store import find_live
from crokers.services.team_service import team_to_dict
from crokers.utils.datetime_utils import isoformat, utcnow
from crokers.utils.exceptions import ValidationError, NotFoundError, ConflictError

logger = logging.getLogger(__name__)


def _link_to_dict(link: TeamSeason) -> Dict:
    return {
        "id": link.id,
        "team_id": link.team_id,
        "season_id": link.season_id,
        "is_active": link.is_active,
        "created_at": isoformat(link.created_at),
        "updated_at": isoformat(link.updated_at),
    }


def _require_ids(team_id: Optional[int], season_id: Optional[int]) -> None:
    if not team_id or not season_id or team_id <= 0 or season_id <= 0:
        raise ValidationError("team_id and season_id are required")


async def _get_link(
    session: AsyncSession, team_id: int, season_id: int, include_deleted: bool = False
) -> Optional[TeamSeason]:
    query = select(TeamSeason).where(
        TeamSeason.team_id == team_id,
        TeamSeason.season_id == season_id,
    )
    if not include_deleted:
        query = query.where(TeamSeason.deleted_at.is_(None))
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def link_team_season(
    session: AsyncSession, team_id: int, season_id: int, is_active: Optional[bool] = None
) -> Dict:
    """
    Link a team to a season (idempotent upsert).

    An existing row for the pair is reused even when tombstoned: the
    tombstone is cleared and is_active reset. is_active defaults to True.
    """
    _require_ids(team_id, season_id)
    if await find_live(session, Team, team_id) is None:
        raise NotFoundError("team not found")
    if await find_live(session, Season, season_id) is None:
        raise NotFoundError("season not found")
    active = True if is_active is None else is_active

    link = await _get_link(session, team_id, season_id, include_deleted=True)
    if link is None:
        link = TeamSeason(team_id=team_id, season_id=season_id, is_active=active)
        session.add(link)
    else:
        if link.deleted_at is not None:
            logger.info(f"Reviving team-season link team={team_id} season={season_id}")
        link.deleted_at = None
        link.is_active = active

    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("team is already linked to this season")
    await session.refresh(link)
    return _link_to_dict(link)


async def set_team_season_active(
    session: AsyncSession, team_id: int, season_id: int, is_active: bool
) -> Dict:
    """Flip is_active on a live link. Raises NotFoundError when there is none."""
    _require_ids(team_id, season_id)
    link = await _get_link(session, team_id, season_id)
    if link is None:
        raise NotFoundError("team-season link not found")
    link.is_active = bool(is_active)
    await session.commit()
    await session.refresh(link)
    return _link_to_dict(link)


async def unlink_team_season(session: AsyncSession, team_id: int, season_id: int) -> None:
    """Tombstone the link. Unlinking a missing link is a no-op."""
    _require_ids(team_id, season_id)
    link = await _get_link(session, team_id, season_id)
    if link is None:
        return
    link.deleted_at = utcnow()
    await session.commit()
    logger.info(f"Unlinked team {team_id} from season {season_id}")


async def list_team_seasons(
    session: AsyncSession,
    team_id: Optional[int] = None,
    season_id: Optional[int] = None,
    only_active: bool = False,
    page: Optional[int] = None,
    size: Optional[int] = None,
) -> Tuple[List[Dict], int]:
    page, size = normalize_page(page, size)
    conditions = [TeamSeason.deleted_at.is_(None)]
    if team_id:
        conditions.append(TeamSeason.team_id == team_id)
    if season_id:
        conditions.append(TeamSeason.season_id == season_id)
    if only_active:
        conditions.append(TeamSeason.is_active.is_(True))

    total = (await session.execute(
        select(func.count(TeamSeason.id)).where(*conditions)
    )).scalar() or 0
    result = await session.execute(
        select(TeamSeason)
        .where(*conditions)
        .order_by(TeamSeason.id.desc())
        .offset(offset_for(page, size))
        .limit(size)
    )
    return [_link_to_dict(link) for link in result.scalars().all()], total


async def list_seasons_for_team(
    session: AsyncSession, team_id: int, only_active: bool = False
) -> List[Dict]:
    """Live seasons linked to a team, newest first."""
    if not team_id or team_id <= 0:
        raise ValidationError("team_id must be > 0")
    query = (
        select(Season)
        .join(TeamSeason, TeamSeason.season_id == Season.id)
        .where(
            TeamSeason.team_id == team_id,
            TeamSeason.deleted_at.is_(None),
            Season.deleted_at.is_(None),
        )
    )
    if only_active:
        query = query.where(TeamSeason.is_active.is_(True))
    result = await session.execute(query.order_by(Season.id.desc()))
    return [season_to_dict(s) for s in result.scalars().all()]


async def list_teams_for_season(
    session: AsyncSession, season_id: int, only_active: bool = False
) -> List[Dict]:
    """Live teams linked to a season, newest first."""
    if not season_id or season_id <= 0:
        raise ValidationError("season_id must be > 0")
    query = (
        select(Team)
        .join(TeamSeason, TeamSeason.team_id == Team.id)
        .where(
            TeamSeason.season_id == season_id,
            TeamSeason.deleted_at.is_(None),
            Team.deleted_at.is_(None),
        )
    )
    if only_active:
        query = query.where(TeamSeason.is_active.is_(True))
    result = await session.execute(query.order_by(Team.id.desc()))
    return [team_to_dict(t) for t in result.scalars().all()]
