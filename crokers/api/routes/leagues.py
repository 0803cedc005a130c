"""League route handlers."""

from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from crokers.api.auth_dependencies import get_current_user
from crokers.database.db import get_db_session
from crokers.models.schemas import CreateLeagueRequest, UpdateLeagueRequest
from crokers.services import league_service
from crokers.services.pagination import normalize_page, paged_response

router = APIRouter()


@router.post("/leagues", status_code=201)
async def create_league(
    payload: CreateLeagueRequest,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    return await league_service.create_league(session, payload.name)


@router.get("/leagues")
async def list_leagues(
    q: Optional[str] = None,
    page: Optional[int] = None,
    size: Optional[int] = None,
    session: AsyncSession = Depends(get_db_session),
):
    """List leagues. Query: q (name search), page, size."""
    page, size = normalize_page(page, size)
    items, total = await league_service.list_leagues(session, q=q, page=page, size=size)
    return paged_response(items, total, page, size)


@router.get("/leagues/{league_id}")
async def get_league(league_id: int, session: AsyncSession = Depends(get_db_session)):
    return await league_service.get_league(session, league_id)


@router.put("/leagues/{league_id}")
async def update_league(
    league_id: int,
    payload: UpdateLeagueRequest,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    return await league_service.update_league(
        session, league_id, payload.model_dump(exclude_unset=True)
    )


@router.delete("/leagues/{league_id}", status_code=204)
async def delete_league(
    league_id: int,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    await league_service.delete_league(session, league_id)
    return Response(status_code=204)
