"""
Game lifecycle: creation with both sides, partial updates with status
side effects, completion and soft deletion.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from crokers.database.models import (
    Game,
    GameSide,
    GameStatus,
    MatchType,
    DiscColor,
    SideLabel,
    Player,
    Season,
    Team,
    DEFAULT_TIMEZONE,
    DEFAULT_TARGET_POINTS,
)
from crokers.services.pagination import normalize_page, offset_for
from crokers.services.store import get_live, find_live
from crokers.utils.datetime_utils import isoformat, is_valid_timezone, parse_timestamp, utcnow
from crokers.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)

COLORS = {c.value for c in DiscColor}
STATUSES = {s.value for s in GameStatus}
MATCH_TYPES = {m.value for m in MatchType}
CLOSED_STATUSES = {GameStatus.COMPLETED.value, GameStatus.CANCELED.value}

ORDERABLE_COLUMNS = {
    "id": Game.id,
    "scheduled_at": Game.scheduled_at,
    "started_at": Game.started_at,
    "ended_at": Game.ended_at,
    "created_at": Game.created_at,
    "updated_at": Game.updated_at,
    "status": Game.status,
    "target_points": Game.target_points,
}


#
# Status transitions
#

def _to_scheduled(game: Game, now: datetime) -> None:
    # Explicit reset back to a fresh game
    game.started_at = None
    game.ended_at = None
    game.winner_side = None


def _to_in_progress(game: Game, now: datetime) -> None:
    if game.started_at is None:
        game.started_at = now


def _to_completed(game: Game, now: datetime) -> None:
    # Winner is not implied; complete_with_winner sets it
    if game.ended_at is None:
        game.ended_at = now


def _to_canceled(game: Game, now: datetime) -> None:
    game.ended_at = now


STATUS_TRANSITIONS: Dict[str, Callable[[Game, datetime], None]] = {
    GameStatus.SCHEDULED.value: _to_scheduled,
    GameStatus.IN_PROGRESS.value: _to_in_progress,
    GameStatus.COMPLETED.value: _to_completed,
    GameStatus.CANCELED.value: _to_canceled,
}


def apply_status(game: Game, status: str) -> None:
    """Move a game to ``status`` and apply that status's timestamp side effects."""
    normalized = (status or "").strip().lower()
    transition = STATUS_TRANSITIONS.get(normalized)
    if transition is None:
        raise ValidationError("invalid status")
    game.status = normalized
    transition(game, utcnow())


#
# Serialization
#

def game_to_dict(game: Game) -> Dict:
    return {
        "id": game.id,
        "season_id": game.season_id,
        "match_type": game.match_type,
        "target_points": game.target_points,
        "status": game.status,
        "winner_side": game.winner_side,
        "scheduled_at": isoformat(game.scheduled_at),
        "started_at": isoformat(game.started_at),
        "ended_at": isoformat(game.ended_at),
        "timezone": game.timezone,
        "location": game.location,
        "description": game.description,
        "created_at": isoformat(game.created_at),
        "updated_at": isoformat(game.updated_at),
    }


def side_to_dict(side: GameSide) -> Dict:
    return {
        "id": side.id,
        "game_id": side.game_id,
        "side": side.side,
        "team_id": side.team_id,
        "player_id": side.player_id,
        "color": side.color,
        "points": side.points,
        "created_at": isoformat(side.created_at),
        "updated_at": isoformat(side.updated_at),
    }


#
# Helpers
#

def normalize_color(color: Optional[str], label: str) -> str:
    """Resolve a side color; empty means natural."""
    if color is None or not color.strip():
        return DiscColor.NATURAL.value
    value = color.strip().lower()
    if value not in COLORS:
        raise ValidationError(f"invalid color for side {label}")
    return value


def normalize_side(side: Optional[str]) -> str:
    value = (side or "").strip().upper()
    if value not in {s.value for s in SideLabel}:
        raise ValidationError("side must be 'A' or 'B'")
    return value


def _parse_optional_timestamp(value: Optional[str], field: str) -> Optional[datetime]:
    if value is None or not value.strip():
        return None
    try:
        return parse_timestamp(value)
    except ValueError:
        raise ValidationError(f"{field} must be an RFC 3339 timestamp")


def _check_timezone(tz: str) -> str:
    tz = tz.strip()
    if not is_valid_timezone(tz):
        raise ValidationError("invalid timezone")
    return tz


async def build_side(
    session: AsyncSession, label: str, match_type: str, participant: Optional[Dict]
) -> GameSide:
    """
    Build an unsaved side from a participant payload
    ({"team_id", "player_id", "color"}).

    A "teams" game takes the team id and ignores any player id, a "players"
    game the reverse. The referenced row must be live.
    """
    participant = participant or {}
    side = GameSide(
        side=label,
        color=normalize_color(participant.get("color"), label),
        points=0,
    )
    if match_type == MatchType.TEAMS.value:
        team_id = participant.get("team_id")
        if not team_id or team_id <= 0:
            raise ValidationError(f"side {label}: team_id is required for a team match")
        if await find_live(session, Team, team_id) is None:
            raise ValidationError(f"side {label}: team not found")
        side.team_id = team_id
    else:
        player_id = participant.get("player_id")
        if not player_id or player_id <= 0:
            raise ValidationError(f"side {label}: player_id is required for a player match")
        if await find_live(session, Player, player_id) is None:
            raise ValidationError(f"side {label}: player not found")
        side.player_id = player_id
    return side


async def load_sides(session: AsyncSession, game_id: int) -> List[GameSide]:
    """Live sides of a game ordered A, B."""
    result = await session.execute(
        select(GameSide)
        .where(GameSide.game_id == game_id, GameSide.deleted_at.is_(None))
        .order_by(GameSide.side)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def get_game_row(session: AsyncSession, game_id: int) -> Game:
    return await get_live(session, Game, game_id, "game")


#
# Operations
#

async def create_game(
    session: AsyncSession,
    match_type: str,
    side_a: Optional[Dict],
    side_b: Optional[Dict],
    season_id: Optional[int] = None,
    target_points: Optional[int] = None,
    scheduled_at: Optional[str] = None,
    timezone: Optional[str] = None,
    location: Optional[str] = None,
    description: Optional[str] = None,
) -> Dict:
    """
    Create a game and its two sides in a single transaction.

    Args:
        match_type: "teams" or "players" (case-insensitive)
        side_a, side_b: Participant payloads, see build_side
        season_id: Owning season; None makes an exhibition game
        target_points: Defaults to 100; non-positive values fall back to it
        scheduled_at: RFC 3339 timestamp
        timezone: IANA name, America/New_York by default

    Returns:
        {"game": ..., "sides": [A, B]}
    """
    mt = (match_type or "").strip().lower()
    if mt not in MATCH_TYPES:
        raise ValidationError("match_type must be 'teams' or 'players'")

    if season_id is not None and await find_live(session, Season, season_id) is None:
        raise ValidationError("season not found")

    a = await build_side(session, SideLabel.A.value, mt, side_a)
    b = await build_side(session, SideLabel.B.value, mt, side_b)
    if mt == MatchType.TEAMS.value and a.team_id == b.team_id:
        raise ValidationError("team A and team B cannot be the same")
    if mt == MatchType.PLAYERS.value and a.player_id == b.player_id:
        raise ValidationError("player A and player B cannot be the same")

    tz = _check_timezone(timezone) if timezone and timezone.strip() else DEFAULT_TIMEZONE
    target = target_points if target_points and target_points > 0 else DEFAULT_TARGET_POINTS

    game = Game(
        season_id=season_id,
        match_type=mt,
        target_points=target,
        status=GameStatus.SCHEDULED.value,
        scheduled_at=_parse_optional_timestamp(scheduled_at, "scheduled_at"),
        timezone=tz,
        location=location,
        description=description,
    )
    session.add(game)
    await session.flush()
    a.game_id = game.id
    b.game_id = game.id
    session.add_all([a, b])
    await session.commit()

    await session.refresh(game)
    sides = await load_sides(session, game.id)
    logger.info(f"Created {mt} game {game.id} (season={season_id})")
    return {"game": game_to_dict(game), "sides": [side_to_dict(s) for s in sides]}


async def get_game(session: AsyncSession, game_id: int) -> Dict:
    return game_to_dict(await get_game_row(session, game_id))


async def get_game_with_sides(session: AsyncSession, game_id: int) -> Dict:
    game = await get_game_row(session, game_id)
    sides = await load_sides(session, game.id)
    return {"game": game_to_dict(game), "sides": [side_to_dict(s) for s in sides]}


async def update_game(session: AsyncSession, game_id: int, fields: Dict) -> Dict:
    """
    Partial update of a game.

    Keys absent from ``fields`` are left alone. season_id of 0 or None turns
    the game into an exhibition game; scheduled_at of "" or None clears it;
    location/description of None clear them. A status change applies the
    STATUS_TRANSITIONS side effects. side_a_color/side_b_color are only
    accepted while the game is neither completed nor canceled.
    """
    game = await get_game_row(session, game_id)
    was_closed = game.status in CLOSED_STATUSES

    if "season_id" in fields:
        season_id = fields["season_id"]
        if not season_id:
            game.season_id = None
        else:
            if await find_live(session, Season, season_id) is None:
                raise ValidationError("season not found")
            game.season_id = season_id

    if "target_points" in fields:
        target = fields["target_points"]
        if target is None or target <= 0:
            raise ValidationError("target_points must be > 0")
        game.target_points = target

    if "scheduled_at" in fields:
        game.scheduled_at = _parse_optional_timestamp(fields["scheduled_at"], "scheduled_at")

    if "timezone" in fields:
        tz = fields["timezone"]
        if tz is None or not tz.strip():
            raise ValidationError("timezone cannot be empty")
        game.timezone = _check_timezone(tz)

    if "location" in fields:
        game.location = fields["location"]
    if "description" in fields:
        game.description = fields["description"]

    color_updates = {}
    for key, label in (("side_a_color", "A"), ("side_b_color", "B")):
        if fields.get(key) is not None:
            color_updates[label] = normalize_color(fields[key], label)
    if color_updates and was_closed:
        raise ValidationError("cannot change colors of a completed or canceled game")

    if fields.get("status") is not None:
        previous = game.status
        apply_status(game, fields["status"])
        if previous != game.status:
            logger.info(f"Game {game.id} status {previous} -> {game.status}")

    if color_updates:
        for side in await load_sides(session, game.id):
            if side.side in color_updates:
                side.color = color_updates[side.side]

    await session.commit()
    await session.refresh(game)
    return game_to_dict(game)


async def complete_with_winner(session: AsyncSession, game_id: int, winner_side: str) -> Dict:
    """
    Mark a game completed with the given winner and stamp ended_at once.

    Calling it again on a completed game just updates winner_side.

    Raises:
        ValidationError: Winner is not A/B or the game is canceled
    """
    winner = (winner_side or "").strip().upper()
    if winner not in {s.value for s in SideLabel}:
        raise ValidationError("winner_side must be 'A' or 'B'")
    game = await get_game_row(session, game_id)
    if game.status == GameStatus.CANCELED.value:
        raise ValidationError("cannot complete a canceled game")

    game.status = GameStatus.COMPLETED.value
    game.winner_side = winner
    if game.ended_at is None:
        game.ended_at = utcnow()
    await session.commit()
    await session.refresh(game)
    logger.info(f"Game {game.id} completed, winner {winner}")
    return game_to_dict(game)


async def delete_game(session: AsyncSession, game_id: int) -> None:
    """Tombstone a game and its sides together."""
    game = await get_game_row(session, game_id)
    now = utcnow()
    game.deleted_at = now
    for side in await load_sides(session, game.id):
        side.deleted_at = now
    await session.commit()
    logger.info(f"Deleted game {game_id}")


def _parse_order_by(order_by: Optional[str]):
    """Turn "<column> [asc|desc]" into an ORDER BY list. Default: id desc."""
    if order_by is None or not order_by.strip():
        return [Game.id.desc()]
    parts = order_by.strip().lower().split()
    if len(parts) > 2 or parts[0] not in ORDERABLE_COLUMNS:
        raise ValidationError(f"invalid orderBy: {order_by}")
    direction = parts[1] if len(parts) == 2 else "asc"
    if direction not in ("asc", "desc"):
        raise ValidationError(f"invalid orderBy direction: {direction}")
    column = ORDERABLE_COLUMNS[parts[0]]
    clauses = [column.desc() if direction == "desc" else column.asc()]
    if parts[0] != "id":
        clauses.append(Game.id.desc())
    return clauses


def _parse_statuses(status: Optional[str]) -> List[str]:
    if status is None:
        return []
    values = [s.strip().lower() for s in status.split(",") if s.strip()]
    for value in values:
        if value not in STATUSES:
            raise ValidationError(f"invalid status: {value}")
    return values


async def list_games(
    session: AsyncSession,
    season_id: Optional[int] = None,
    exhibition_only: bool = False,
    status: Optional[str] = None,
    match_type: Optional[str] = None,
    scheduled_from: Optional[str] = None,
    scheduled_to: Optional[str] = None,
    team_id: Optional[int] = None,
    player_id: Optional[int] = None,
    page: Optional[int] = None,
    size: Optional[int] = None,
    order_by: Optional[str] = None,
) -> Tuple[List[Dict], int]:
    """
    List live games.

    season_id takes precedence over exhibition_only. status accepts a
    comma-separated list. player_id matches direct player sides and team
    sides the player belongs to.
    """
    page, size = normalize_page(page, size)
    order_clauses = _parse_order_by(order_by)
    conditions = [Game.deleted_at.is_(None)]

    if season_id:
        conditions.append(Game.season_id == season_id)
    elif exhibition_only:
        conditions.append(Game.season_id.is_(None))

    statuses = _parse_statuses(status)
    if statuses:
        conditions.append(Game.status.in_(statuses))

    if match_type and match_type.strip():
        mt = match_type.strip().lower()
        if mt not in MATCH_TYPES:
            raise ValidationError("match_type must be 'teams' or 'players'")
        conditions.append(Game.match_type == mt)

    start = _parse_optional_timestamp(scheduled_from, "scheduledFrom")
    if start is not None:
        conditions.append(Game.scheduled_at >= start)
    end = _parse_optional_timestamp(scheduled_to, "scheduledTo")
    if end is not None:
        conditions.append(Game.scheduled_at <= end)

    if team_id:
        conditions.append(Game.id.in_(
            select(GameSide.game_id).where(
                GameSide.team_id == team_id, GameSide.deleted_at.is_(None)
            )
        ))
    if player_id:
        member_teams = select(Team.id).where(
            or_(Team.player_a_id == player_id, Team.player_b_id == player_id)
        )
        conditions.append(Game.id.in_(
            select(GameSide.game_id).where(
                GameSide.deleted_at.is_(None),
                or_(GameSide.player_id == player_id, GameSide.team_id.in_(member_teams)),
            )
        ))

    total = (await session.execute(
        select(func.count(Game.id)).where(*conditions)
    )).scalar() or 0
    result = await session.execute(
        select(Game)
        .where(*conditions)
        .order_by(*order_clauses)
        .offset(offset_for(page, size))
        .limit(size)
    )
    items = [game_to_dict(g) for g in result.scalars().all()]
    logger.debug(f"Listed games: returned={len(items)} total={total}")
    return items, total
