"""
Player CRUD.
"""

import logging
from typing import Dict, List, Optional, Tuple
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from crokers.database.models import Player, User
from crokers.services.pagination import normalize_page, offset_for, search_pattern
from crokers.services.store import get_live, soft_delete
from crokers.utils.datetime_utils import isoformat
from crokers.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)


def _player_to_dict(player: Player) -> Dict:
    return {
        "id": player.id,
        "user_id": player.user_id,
        "nickname": player.nickname,
        "first_name": player.first_name,
        "last_name": player.last_name,
        "created_at": isoformat(player.created_at),
        "updated_at": isoformat(player.updated_at),
    }


def _clean_nickname(nickname: Optional[str]) -> str:
    if nickname is None or not nickname.strip():
        raise ValidationError("nickname is required")
    return nickname.strip()


async def _check_user(session: AsyncSession, user_id: Optional[int]) -> None:
    if user_id is None:
        return
    user = await session.get(User, user_id)
    if user is None:
        raise ValidationError("user_id must reference an existing user")


async def create_player(
    session: AsyncSession,
    nickname: str,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    user_id: Optional[int] = None,
) -> Dict:
    """Create a player, optionally linked to a user account."""
    nickname = _clean_nickname(nickname)
    await _check_user(session, user_id)
    player = Player(
        nickname=nickname,
        first_name=first_name,
        last_name=last_name,
        user_id=user_id,
    )
    session.add(player)
    await session.commit()
    await session.refresh(player)
    logger.info(f"Created player {player.id} ({player.nickname})")
    return _player_to_dict(player)


async def get_player(session: AsyncSession, player_id: int) -> Dict:
    player = await get_live(session, Player, player_id, "player")
    return _player_to_dict(player)


async def update_player(session: AsyncSession, player_id: int, fields: Dict) -> Dict:
    """
    Partial update.

    An explicit None for first_name, last_name or user_id clears that column;
    a key that is absent leaves it unchanged. nickname can never be cleared.
    """
    player = await get_live(session, Player, player_id, "player")
    if "nickname" in fields:
        player.nickname = _clean_nickname(fields["nickname"])
    if "first_name" in fields:
        player.first_name = fields["first_name"]
    if "last_name" in fields:
        player.last_name = fields["last_name"]
    if "user_id" in fields:
        await _check_user(session, fields["user_id"])
        player.user_id = fields["user_id"]
    await session.commit()
    await session.refresh(player)
    return _player_to_dict(player)


async def delete_player(session: AsyncSession, player_id: int) -> None:
    await soft_delete(session, Player, player_id, "player")
    logger.info(f"Deleted player {player_id}")


async def list_players(
    session: AsyncSession,
    q: Optional[str] = None,
    page: Optional[int] = None,
    size: Optional[int] = None,
) -> Tuple[List[Dict], int]:
    """List live players; q matches nickname, first or last name."""
    page, size = normalize_page(page, size)
    conditions = [Player.deleted_at.is_(None)]
    pattern = search_pattern(q)
    if pattern:
        conditions.append(or_(
            func.lower(Player.nickname).like(pattern),
            func.lower(func.coalesce(Player.first_name, "")).like(pattern),
            func.lower(func.coalesce(Player.last_name, "")).like(pattern),
        ))

    total = (await session.execute(
        select(func.count(Player.id)).where(*conditions)
    )).scalar() or 0
    result = await session.execute(
        select(Player)
        .where(*conditions)
        .order_by(Player.id.desc())
        .offset(offset_for(page, size))
        .limit(size)
    )
    return [_player_to_dict(p) for p in result.scalars().all()], total
