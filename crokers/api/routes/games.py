"""Game route handlers."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from crokers.api.auth_dependencies import get_current_user
from crokers.database.db import get_db_session
from crokers.models.schemas import CreateGameRequest, UpdateGameRequest, CompleteGameRequest
from crokers.services import game_service
from crokers.services.pagination import normalize_page, paged_response

router = APIRouter()


@router.post("/games", status_code=201)
async def create_game(
    payload: CreateGameRequest,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Create a game with both sides.
    Body: {
        seasonId?: int (omit for an exhibition game),
        matchType: "teams" | "players",
        targetPoints?: int (default 100),
        scheduledAt?: RFC 3339,
        timezone?: IANA name,
        location?: str,
        description?: str,
        sideA: {teamId? | playerId?, color?},
        sideB: {teamId? | playerId?, color?}
    }
    Returns {game, sides}.
    """
    return await game_service.create_game(
        session,
        match_type=payload.match_type,
        side_a=payload.side_a.model_dump() if payload.side_a else None,
        side_b=payload.side_b.model_dump() if payload.side_b else None,
        season_id=payload.season_id,
        target_points=payload.target_points,
        scheduled_at=payload.scheduled_at,
        timezone=payload.timezone,
        location=payload.location,
        description=payload.description,
    )


@router.get("/games")
async def list_games(
    season_id: Optional[int] = Query(None, alias="seasonId"),
    exhibition_only: bool = Query(False, alias="exhibitionOnly"),
    status: Optional[str] = None,
    match_type: Optional[str] = Query(None, alias="matchType"),
    scheduled_from: Optional[str] = Query(None, alias="scheduledFrom"),
    scheduled_to: Optional[str] = Query(None, alias="scheduledTo"),
    team_id: Optional[int] = Query(None, alias="teamId"),
    player_id: Optional[int] = Query(None, alias="playerId"),
    page: Optional[int] = None,
    size: Optional[int] = None,
    order_by: Optional[str] = Query(None, alias="orderBy"),
    session: AsyncSession = Depends(get_db_session),
):
    """
    List games.
    status takes a comma-separated list; orderBy is "<column> [asc|desc]".
    """
    page, size = normalize_page(page, size)
    items, total = await game_service.list_games(
        session,
        season_id=season_id,
        exhibition_only=exhibition_only,
        status=status,
        match_type=match_type,
        scheduled_from=scheduled_from,
        scheduled_to=scheduled_to,
        team_id=team_id,
        player_id=player_id,
        page=page,
        size=size,
        order_by=order_by,
    )
    return paged_response(items, total, page, size)


@router.get("/games/{game_id}")
async def get_game(game_id: int, session: AsyncSession = Depends(get_db_session)):
    return await game_service.get_game(session, game_id)


@router.get("/games/{game_id}/with-sides")
async def get_game_with_sides(game_id: int, session: AsyncSession = Depends(get_db_session)):
    return await game_service.get_game_with_sides(session, game_id)


@router.put("/games/{game_id}")
async def update_game(
    game_id: int,
    payload: UpdateGameRequest,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Partial update. Absent fields stay as they are; null clears where allowed."""
    return await game_service.update_game(
        session, game_id, payload.model_dump(exclude_unset=True)
    )


@router.delete("/games/{game_id}", status_code=204)
async def delete_game(
    game_id: int,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    await game_service.delete_game(session, game_id)
    return Response(status_code=204)


@router.post("/games/{game_id}/complete")
async def complete_game(
    game_id: int,
    payload: CompleteGameRequest,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Body: {winnerSide: "A" | "B"}."""
    return await game_service.complete_with_winner(session, game_id, payload.winner_side)
