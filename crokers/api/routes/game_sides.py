"""Game side (scoring and color) route handlers."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crokers.api.auth_dependencies import get_current_user
from crokers.database.db import get_db_session
from crokers.models.schemas import SetColorRequest, AddPointsRequest, SetPointsRequest
from crokers.services import game_side_service

router = APIRouter()


@router.get("/games/{game_id}/sides")
async def list_sides(game_id: int, session: AsyncSession = Depends(get_db_session)):
    return await game_side_service.list_sides(session, game_id)


@router.put("/games/{game_id}/sides/{side}/color")
async def set_side_color(
    game_id: int,
    side: str,
    payload: SetColorRequest,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    return await game_side_service.set_color(session, game_id, side, payload.color)


@router.post("/games/{game_id}/sides/{side}/points/add")
async def add_points(
    game_id: int,
    side: str,
    payload: AddPointsRequest,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Add points to a side. Body: {delta: int >= 0}.
    The first score on a scheduled game starts it. Returns {game, sides}.
    """
    return await game_side_service.add_points(session, game_id, side, payload.delta)


@router.put("/games/{game_id}/sides/{side}/points")
async def set_points(
    game_id: int,
    side: str,
    payload: SetPointsRequest,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Set a side's points. Body: {points: int >= 0}. Returns {game, sides}."""
    return await game_side_service.set_points(session, game_id, side, payload.points)
