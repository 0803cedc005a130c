"""Team route handlers."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from crokers.api.auth_dependencies import get_current_user
from crokers.database.db import get_db_session
from crokers.models.schemas import CreateTeamRequest, UpdateTeamRequest
from crokers.services import team_service, team_season_service
from crokers.services.pagination import normalize_page, paged_response

router = APIRouter()


@router.post("/teams", status_code=201)
async def create_team(
    payload: CreateTeamRequest,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Create a team. Body: {name, description?, playerAId, playerBId}.
    Player order doesn't matter; a second team for the same pair is a 409.
    """
    return await team_service.create_team(
        session,
        name=payload.name,
        player_a_id=payload.player_a_id,
        player_b_id=payload.player_b_id,
        description=payload.description,
    )


@router.get("/teams")
async def list_teams(
    q: Optional[str] = None,
    player_id: Optional[int] = Query(None, alias="playerId"),
    season_id: Optional[int] = Query(None, alias="seasonId"),
    only_active: bool = Query(False, alias="onlyActive"),
    page: Optional[int] = None,
    size: Optional[int] = None,
    session: AsyncSession = Depends(get_db_session),
):
    page, size = normalize_page(page, size)
    items, total = await team_service.list_teams(
        session,
        q=q,
        player_id=player_id,
        season_id=season_id,
        only_active=only_active,
        page=page,
        size=size,
    )
    return paged_response(items, total, page, size)


@router.get("/teams/{team_id}")
async def get_team(team_id: int, session: AsyncSession = Depends(get_db_session)):
    return await team_service.get_team(session, team_id)


@router.put("/teams/{team_id}")
async def update_team(
    team_id: int,
    payload: UpdateTeamRequest,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    return await team_service.update_team(
        session, team_id, payload.model_dump(exclude_unset=True)
    )


@router.delete("/teams/{team_id}", status_code=204)
async def delete_team(
    team_id: int,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    await team_service.delete_team(session, team_id)
    return Response(status_code=204)


@router.get("/teams/{team_id}/seasons")
async def list_team_seasons_for_team(
    team_id: int,
    only_active: bool = Query(False, alias="onlyActive"),
    session: AsyncSession = Depends(get_db_session),
):
    return await team_season_service.list_seasons_for_team(session, team_id, only_active)
