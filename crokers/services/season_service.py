"""
Season CRUD. A season belongs to exactly one live league.
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Tuple
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from crokers.database.models import League, Season, DEFAULT_TIMEZONE
from crokers.services.pagination import normalize_page, offset_for, search_pattern
from crokers.services.store import get_live, find_live, soft_delete
from crokers.utils.datetime_utils import isoformat, is_valid_timezone, parse_ymd
from crokers.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)


def season_to_dict(season: Season) -> Dict:
    return {
        "id": season.id,
        "league_id": season.league_id,
        "name": season.name,
        "starts_on": isoformat(season.starts_on),
        "ends_on": isoformat(season.ends_on),
        "timezone": season.timezone,
        "description": season.description,
        "created_at": isoformat(season.created_at),
        "updated_at": isoformat(season.updated_at),
    }


def _parse_date(value: Optional[str], field: str) -> Optional[date]:
    """Empty or null clears; anything else must be YYYY-MM-DD."""
    if value is None or not value.strip():
        return None
    try:
        return parse_ymd(value)
    except ValueError:
        raise ValidationError(f"{field} must be YYYY-MM-DD")


def _check_timezone(tz: Optional[str]) -> str:
    if tz is None or not tz.strip():
        raise ValidationError("timezone is required")
    tz = tz.strip()
    if not is_valid_timezone(tz):
        raise ValidationError(f"invalid timezone: {tz}")
    return tz


def _check_range(starts_on: Optional[date], ends_on: Optional[date]) -> None:
    if starts_on and ends_on and ends_on < starts_on:
        raise ValidationError("ends_on must be on or after starts_on")


async def _require_league(session: AsyncSession, league_id: Optional[int]) -> None:
    if await find_live(session, League, league_id) is None:
        raise ValidationError("league_id must reference an existing league")


async def create_season(
    session: AsyncSession,
    league_id: int,
    name: str,
    starts_on: Optional[str] = None,
    ends_on: Optional[str] = None,
    timezone: Optional[str] = None,
    description: Optional[str] = None,
) -> Dict:
    """
    Create a season under a live league.

    Dates are YYYY-MM-DD strings; timezone defaults to America/New_York and
    must be a known IANA name.
    """
    if name is None or not name.strip():
        raise ValidationError("name is required")
    start = _parse_date(starts_on, "starts_on")
    end = _parse_date(ends_on, "ends_on")
    _check_range(start, end)
    tz = _check_timezone(timezone) if timezone is not None else DEFAULT_TIMEZONE
    await _require_league(session, league_id)

    season = Season(
        league_id=league_id,
        name=name.strip(),
        starts_on=start,
        ends_on=end,
        timezone=tz,
        description=description,
    )
    session.add(season)
    await session.commit()
    await session.refresh(season)
    logger.info(f"Created season {season.id} in league {league_id}")
    return season_to_dict(season)


async def get_season(session: AsyncSession, season_id: int) -> Dict:
    season = await get_live(session, Season, season_id, "season")
    return season_to_dict(season)


async def update_season(session: AsyncSession, season_id: int, fields: Dict) -> Dict:
    """
    Partial update. Keys absent from ``fields`` are left unchanged; an explicit
    None clears the nullable columns (dates, description).
    """
    season = await get_live(session, Season, season_id, "season")

    if "league_id" in fields:
        await _require_league(session, fields["league_id"])
        season.league_id = fields["league_id"]
    if "name" in fields:
        name = fields["name"]
        if name is None or not name.strip():
            raise ValidationError("name cannot be empty")
        season.name = name.strip()

    starts_on = _parse_date(fields["starts_on"], "starts_on") if "starts_on" in fields else season.starts_on
    ends_on = _parse_date(fields["ends_on"], "ends_on") if "ends_on" in fields else season.ends_on
    _check_range(starts_on, ends_on)
    season.starts_on = starts_on
    season.ends_on = ends_on

    if "timezone" in fields:
        season.timezone = _check_timezone(fields["timezone"])
    if "description" in fields:
        season.description = fields["description"]

    await session.commit()
    await session.refresh(season)
    return season_to_dict(season)


async def delete_season(session: AsyncSession, season_id: int) -> None:
    await soft_delete(session, Season, season_id, "season")
    logger.info(f"Deleted season {season_id}")


async def list_seasons(
    session: AsyncSession,
    q: Optional[str] = None,
    league_id: Optional[int] = None,
    page: Optional[int] = None,
    size: Optional[int] = None,
) -> Tuple[List[Dict], int]:
    """List live seasons, optionally restricted to one league."""
    page, size = normalize_page(page, size)
    conditions = [Season.deleted_at.is_(None)]
    pattern = search_pattern(q)
    if pattern:
        conditions.append(func.lower(Season.name).like(pattern))
    if league_id:
        conditions.append(Season.league_id == league_id)

    total = (await session.execute(
        select(func.count(Season.id)).where(*conditions)
    )).scalar() or 0
    result = await session.execute(
        select(Season)
        .where(*conditions)
        .order_by(Season.id.desc())
        .offset(offset_for(page, size))
        .limit(size)
    )
    return [season_to_dict(s) for s in result.scalars().all()], total
