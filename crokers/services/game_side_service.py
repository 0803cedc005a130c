"""
Scoring and color operations on the two sides of a game.
"""

import logging
from typing import Dict, List, Optional
from sqlalchemy import case, update
from sqlalchemy.ext.asyncio import AsyncSession
from crokers.database.models import Game, GameSide, GameStatus
from crokers.services.game_service import (
    CLOSED_STATUSES,
    game_to_dict,
    get_game_row,
    load_sides,
    normalize_color,
    normalize_side,
    side_to_dict,
)
from crokers.utils.datetime_utils import utcnow
from crokers.utils.exceptions import ValidationError, NotFoundError

logger = logging.getLogger(__name__)

# What a scoring call does for each current status. None rejects the call.
SCORING_TRANSITIONS: Dict[str, Optional[str]] = {
    GameStatus.SCHEDULED.value: GameStatus.IN_PROGRESS.value,  # first score starts the game
    GameStatus.IN_PROGRESS.value: GameStatus.IN_PROGRESS.value,
    GameStatus.COMPLETED.value: None,
    GameStatus.CANCELED.value: None,
}


def _start_scoring(game: Game) -> None:
    next_status = SCORING_TRANSITIONS.get(game.status)
    if next_status is None:
        raise ValidationError(f"cannot score a {game.status} game")
    if game.status != next_status:
        logger.info(f"Game {game.id} started by first score")
    game.status = next_status
    if game.started_at is None:
        game.started_at = utcnow()


def _find_side(sides: List[GameSide], label: str) -> GameSide:
    for side in sides:
        if side.side == label:
            return side
    raise NotFoundError(f"side {label} not found")


async def _scored(session: AsyncSession, game: Game) -> Dict:
    await session.commit()
    await session.refresh(game)
    sides = await load_sides(session, game.id)
    return {"game": game_to_dict(game), "sides": [side_to_dict(s) for s in sides]}


async def list_sides(session: AsyncSession, game_id: int) -> List[Dict]:
    """Sides of a live game, A first."""
    game = await get_game_row(session, game_id)
    return [side_to_dict(s) for s in await load_sides(session, game.id)]


async def set_color(session: AsyncSession, game_id: int, side: str, color: str) -> Dict:
    """Change a side's disc color while the game is still open."""
    label = normalize_side(side)
    if color is None or not color.strip():
        raise ValidationError("color is required")
    value = normalize_color(color, label)
    game = await get_game_row(session, game_id)
    if game.status in CLOSED_STATUSES:
        raise ValidationError("cannot change colors of a completed or canceled game")
    target = _find_side(await load_sides(session, game.id), label)
    target.color = value
    await session.commit()
    await session.refresh(target)
    return side_to_dict(target)


async def add_points(session: AsyncSession, game_id: int, side: str, delta: int) -> Dict:
    """
    Add a non-negative delta to a side's points.

    Scoring a scheduled game moves it to in_progress; completed and canceled
    games reject scoring.

    Returns:
        {"game": ..., "sides": [A, B]}
    """
    label = normalize_side(side)
    if delta is None or delta < 0:
        raise ValidationError("delta must be >= 0")
    game = await get_game_row(session, game_id)
    _start_scoring(game)
    target = _find_side(await load_sides(session, game.id), label)

    # Increment in SQL so concurrent adds don't overwrite each other
    new_points = GameSide.points + delta
    await session.execute(
        update(GameSide)
        .where(GameSide.id == target.id)
        .values(points=case((new_points < 0, 0), else_=new_points))
        .execution_options(synchronize_session=False)
    )
    return await _scored(session, game)


async def set_points(session: AsyncSession, game_id: int, side: str, points: int) -> Dict:
    """Set a side's points to an absolute non-negative value."""
    label = normalize_side(side)
    if points is None or points < 0:
        raise ValidationError("points must be >= 0")
    game = await get_game_row(session, game_id)
    _start_scoring(game)
    target = _find_side(await load_sides(session, game.id), label)
    target.points = max(points, 0)
    return await _scored(session, game)
