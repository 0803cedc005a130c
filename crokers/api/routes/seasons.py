"""Season, standings and stats route handlers."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from crokers.api.auth_dependencies import get_current_user
from crokers.database.db import get_db_session
from crokers.models.schemas import CreateSeasonRequest, UpdateSeasonRequest
from crokers.services import season_service, standings_service, team_season_service
from crokers.services.pagination import normalize_page, paged_response

router = APIRouter()


@router.post("/seasons", status_code=201)
async def create_season(
    payload: CreateSeasonRequest,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Create a season in a league.
    Body: {leagueId: int, name: str, startsOn?: YYYY-MM-DD, endsOn?: YYYY-MM-DD,
           timezone?: IANA name, description?: str}
    """
    return await season_service.create_season(
        session,
        league_id=payload.league_id,
        name=payload.name,
        starts_on=payload.starts_on,
        ends_on=payload.ends_on,
        timezone=payload.timezone,
        description=payload.description,
    )


@router.get("/seasons")
async def list_seasons(
    q: Optional[str] = None,
    league_id: Optional[int] = Query(None, alias="leagueId"),
    page: Optional[int] = None,
    size: Optional[int] = None,
    session: AsyncSession = Depends(get_db_session),
):
    page, size = normalize_page(page, size)
    items, total = await season_service.list_seasons(
        session, q=q, league_id=league_id, page=page, size=size
    )
    return paged_response(items, total, page, size)


@router.get("/seasons/{season_id}")
async def get_season(season_id: int, session: AsyncSession = Depends(get_db_session)):
    return await season_service.get_season(session, season_id)


@router.put("/seasons/{season_id}")
async def update_season(
    season_id: int,
    payload: UpdateSeasonRequest,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    return await season_service.update_season(
        session, season_id, payload.model_dump(exclude_unset=True)
    )


@router.delete("/seasons/{season_id}", status_code=204)
async def delete_season(
    season_id: int,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    await season_service.delete_season(session, season_id)
    return Response(status_code=204)


@router.get("/seasons/{season_id}/teams")
async def list_season_teams(
    season_id: int,
    only_active: bool = Query(False, alias="onlyActive"),
    session: AsyncSession = Depends(get_db_session),
):
    return await team_season_service.list_teams_for_season(session, season_id, only_active)


@router.get("/seasons/{season_id}/standings")
async def get_standings(season_id: int, session: AsyncSession = Depends(get_db_session)):
    """Team standings from completed team games."""
    return await standings_service.get_standings(session, season_id)


@router.get("/seasons/{season_id}/standings/players")
async def list_player_standings(
    season_id: int,
    limit: Optional[int] = None,
    cursor: Optional[str] = None,
    session: AsyncSession = Depends(get_db_session),
):
    """
    Player standings, keyset paginated.
    Query: limit (default 50, max 200), cursor (next_cursor from the previous page).
    """
    return await standings_service.list_player_standings(
        session, season_id, limit=limit, cursor=cursor
    )


@router.get("/seasons/{season_id}/stats/players")
async def list_player_stats(season_id: int, session: AsyncSession = Depends(get_db_session)):
    return await standings_service.list_player_stats(session, season_id)


@router.get("/seasons/{season_id}/stats/teams")
async def list_team_stats(season_id: int, session: AsyncSession = Depends(get_db_session)):
    return await standings_service.list_team_stats(session, season_id)
