"""
Team CRUD.

A team is a fixed unordered pair of two distinct players, always stored in
canonical order (player_a_id < player_b_id). One live team per pair.
"""

import logging
from typing import Dict, List, Optional, Tuple
from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from crokers.database.models import Player, Team, TeamSeason
from crokers.services.pagination import normalize_page, offset_for, search_pattern
from crokers.services.store import get_live, find_live, soft_delete
from crokers.utils.datetime_utils import isoformat
from crokers.utils.exceptions import ValidationError, ConflictError

logger = logging.getLogger(__name__)

DUPLICATE_PAIR_MESSAGE = "team for this player pair already exists"


def canonical_pair(a: int, b: int) -> Tuple[int, int]:
    """Order a pair so the lower id comes first."""
    return (b, a) if a > b else (a, b)


def team_to_dict(team: Team) -> Dict:
    return {
        "id": team.id,
        "name": team.name,
        "description": team.description,
        "player_a_id": team.player_a_id,
        "player_b_id": team.player_b_id,
        "created_at": isoformat(team.created_at),
        "updated_at": isoformat(team.updated_at),
    }


async def _validate_pair(session: AsyncSession, a: Optional[int], b: Optional[int]) -> Tuple[int, int]:
    if not a or not b or a <= 0 or b <= 0:
        raise ValidationError("player_a_id and player_b_id are required")
    if a == b:
        raise ValidationError("players must be distinct")
    if await find_live(session, Player, a) is None:
        raise ValidationError("player_a_id not found")
    if await find_live(session, Player, b) is None:
        raise ValidationError("player_b_id not found")
    return canonical_pair(a, b)


async def _find_team_for_pair(session: AsyncSession, a: int, b: int) -> Optional[Team]:
    a, b = canonical_pair(a, b)
    result = await session.execute(
        select(Team).where(
            Team.player_a_id == a,
            Team.player_b_id == b,
            Team.deleted_at.is_(None),
        )
    )
    return result.scalar_one_or_none()


async def _commit_pair(session: AsyncSession) -> None:
    """Commit, mapping a lost race on the live-pair index to a conflict."""
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ConflictError(DUPLICATE_PAIR_MESSAGE)


async def create_team(
    session: AsyncSession,
    name: str,
    player_a_id: int,
    player_b_id: int,
    description: Optional[str] = None,
) -> Dict:
    """
    Create a team for two distinct, live players.

    The pair is canonicalized before the uniqueness check, so (P2, P1)
    collides with an existing (P1, P2).

    Raises:
        ValidationError: Missing name, missing/identical/unknown players
        ConflictError: A live team already exists for the pair
    """
    if name is None or not name.strip():
        raise ValidationError("name is required")
    a, b = await _validate_pair(session, player_a_id, player_b_id)
    if await _find_team_for_pair(session, a, b) is not None:
        raise ConflictError(DUPLICATE_PAIR_MESSAGE)

    team = Team(name=name.strip(), description=description, player_a_id=a, player_b_id=b)
    session.add(team)
    await _commit_pair(session)
    await session.refresh(team)
    logger.info(f"Created team {team.id} ({a}, {b})")
    return team_to_dict(team)


async def get_team(session: AsyncSession, team_id: int) -> Dict:
    team = await get_live(session, Team, team_id, "team")
    return team_to_dict(team)


async def update_team(session: AsyncSession, team_id: int, fields: Dict) -> Dict:
    """
    Partial update. Changing either player recomputes the canonical pair and
    checks it against every other live team.
    """
    team = await get_live(session, Team, team_id, "team")

    if "name" in fields:
        name = fields["name"]
        if name is None or not name.strip():
            raise ValidationError("name cannot be empty")
        team.name = name.strip()
    if "description" in fields:
        team.description = fields["description"]

    if "player_a_id" in fields or "player_b_id" in fields:
        new_a = fields.get("player_a_id", team.player_a_id)
        new_b = fields.get("player_b_id", team.player_b_id)
        a, b = await _validate_pair(session, new_a, new_b)
        if (a, b) != (team.player_a_id, team.player_b_id):
            other = await _find_team_for_pair(session, a, b)
            if other is not None and other.id != team.id:
                raise ConflictError(DUPLICATE_PAIR_MESSAGE)
        team.player_a_id = a
        team.player_b_id = b

    await _commit_pair(session)
    await session.refresh(team)
    return team_to_dict(team)


async def delete_team(session: AsyncSession, team_id: int) -> None:
    await soft_delete(session, Team, team_id, "team")
    logger.info(f"Deleted team {team_id}")


async def list_teams(
    session: AsyncSession,
    q: Optional[str] = None,
    player_id: Optional[int] = None,
    season_id: Optional[int] = None,
    only_active: bool = False,
    page: Optional[int] = None,
    size: Optional[int] = None,
) -> Tuple[List[Dict], int]:
    """
    List live teams.

    Args:
        q: Case-insensitive substring of the team name
        player_id: Teams where this player is A or B
        season_id: Teams with a live link to this season
        only_active: With season_id, keep only links flagged active
    """
    page, size = normalize_page(page, size)
    conditions = [Team.deleted_at.is_(None)]
    pattern = search_pattern(q)
    if pattern:
        conditions.append(func.lower(Team.name).like(pattern))
    if player_id:
        conditions.append(or_(Team.player_a_id == player_id, Team.player_b_id == player_id))
    if season_id:
        linked = select(TeamSeason.team_id).where(
            TeamSeason.season_id == season_id,
            TeamSeason.deleted_at.is_(None),
        )
        if only_active:
            linked = linked.where(TeamSeason.is_active.is_(True))
        conditions.append(Team.id.in_(linked))

    total = (await session.execute(
        select(func.count(Team.id)).where(*conditions)
    )).scalar() or 0
    result = await session.execute(
        select(Team)
        .where(*conditions)
        .order_by(Team.id.desc())
        .offset(offset_for(page, size))
        .limit(size)
    )
    return [team_to_dict(t) for t in result.scalars().all()], total
