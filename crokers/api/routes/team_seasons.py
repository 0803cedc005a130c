"""Team-season link route handlers."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from crokers.api.auth_dependencies import get_current_user
from crokers.database.db import get_db_session
from crokers.models.schemas import LinkTeamSeasonRequest, SetTeamSeasonActiveRequest
from crokers.services import team_season_service
from crokers.services.pagination import normalize_page, paged_response

router = APIRouter()


@router.post("/team-seasons", status_code=201)
async def link_team_season(
    payload: LinkTeamSeasonRequest,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Link a team to a season. Re-linking revives a previously removed link."""
    return await team_season_service.link_team_season(
        session, payload.team_id, payload.season_id, payload.is_active
    )


@router.put("/team-seasons/{team_id}/{season_id}/active")
async def set_team_season_active(
    team_id: int,
    season_id: int,
    payload: SetTeamSeasonActiveRequest,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    return await team_season_service.set_team_season_active(
        session, team_id, season_id, payload.is_active
    )


@router.delete("/team-seasons/{team_id}/{season_id}", status_code=204)
async def unlink_team_season(
    team_id: int,
    season_id: int,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    await team_season_service.unlink_team_season(session, team_id, season_id)
    return Response(status_code=204)


@router.get("/team-seasons")
async def list_team_seasons(
    team_id: Optional[int] = Query(None, alias="teamId"),
    season_id: Optional[int] = Query(None, alias="seasonId"),
    only_active: bool = Query(False, alias="onlyActive"),
    page: Optional[int] = None,
    size: Optional[int] = None,
    session: AsyncSession = Depends(get_db_session),
):
    page, size = normalize_page(page, size)
    items, total = await team_season_service.list_team_seasons(
        session,
        team_id=team_id,
        season_id=season_id,
        only_active=only_active,
        page=page,
        size=size,
    )
    return paged_response(items, total, page, size)
