"""User account route handlers."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crokers.api.auth_dependencies import get_current_user
from crokers.database.db import get_db_session
from crokers.models.schemas import UpdateRoleRequest, UpdateNameRequest
from crokers.services import user_service

router = APIRouter()


@router.get("/users/{user_id}")
async def get_user(user_id: int, session: AsyncSession = Depends(get_db_session)):
    return await user_service.get_user_by_id(session, user_id)


@router.put("/users/{user_id}/role")
async def update_user_role(
    user_id: int,
    payload: UpdateRoleRequest,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Set role to admin, user or guest."""
    return await user_service.update_user_role(session, user_id, payload.role)


@router.put("/users/{user_id}/name")
async def update_user_name(
    user_id: int,
    payload: UpdateNameRequest,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    return await user_service.update_user_name(session, user_id, payload.name)
