"""Player route handlers."""

from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from crokers.api.auth_dependencies import get_current_user
from crokers.database.db import get_db_session
from crokers.models.schemas import CreatePlayerRequest, UpdatePlayerRequest
from crokers.services import player_service, standings_service
from crokers.services.pagination import normalize_page, paged_response

router = APIRouter()


@router.post("/players", status_code=201)
async def create_player(
    payload: CreatePlayerRequest,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    return await player_service.create_player(
        session,
        nickname=payload.nickname,
        first_name=payload.first_name,
        last_name=payload.last_name,
        user_id=payload.user_id,
    )


@router.get("/players")
async def list_players(
    q: Optional[str] = None,
    page: Optional[int] = None,
    size: Optional[int] = None,
    session: AsyncSession = Depends(get_db_session),
):
    """List players. q matches nickname, first or last name."""
    page, size = normalize_page(page, size)
    items, total = await player_service.list_players(session, q=q, page=page, size=size)
    return paged_response(items, total, page, size)


@router.get("/players/{player_id}")
async def get_player(player_id: int, session: AsyncSession = Depends(get_db_session)):
    return await player_service.get_player(session, player_id)


@router.put("/players/{player_id}")
async def update_player(
    player_id: int,
    payload: UpdatePlayerRequest,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Partial update; send null for firstName, lastName or userId to clear it."""
    return await player_service.update_player(
        session, player_id, payload.model_dump(exclude_unset=True)
    )


@router.delete("/players/{player_id}", status_code=204)
async def delete_player(
    player_id: int,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    await player_service.delete_player(session, player_id)
    return Response(status_code=204)


@router.get("/players/{player_id}/duplicate-games")
async def list_player_duplicate_games(
    player_id: int, session: AsyncSession = Depends(get_db_session)
):
    """Completed games where the player is attributed through more than one path."""
    return await standings_service.list_player_duplicate_games(session, player_id)
