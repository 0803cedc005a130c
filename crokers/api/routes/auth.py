"""Authentication route handlers."""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from crokers.api.routes import limiter, AUTH_RATE_LIMIT
from crokers.database.db import get_db_session
from crokers.services import auth_service
from crokers.models.schemas import RegisterRequest, LoginRequest

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/auth/register", status_code=201)
@limiter.limit(AUTH_RATE_LIMIT)
async def register(
    request: Request, payload: RegisterRequest, session: AsyncSession = Depends(get_db_session)
):
    """
    Create an account.
    Body: {email: str, password: str (8+ chars, at most 72 bytes), name?: str}
    Returns the new user (without the password hash).
    """
    return await auth_service.register(
        session, email=payload.email, password=payload.password, name=payload.name
    )


@router.post("/auth/login")
@limiter.limit(AUTH_RATE_LIMIT)
async def login(
    request: Request, payload: LoginRequest, session: AsyncSession = Depends(get_db_session)
):
    """
    Exchange email + password for a bearer token.
    Returns {token, expires_at, user}. Bad email and bad password give the
    same 401 body.
    """
    return await auth_service.login(session, email=payload.email, password=payload.password)
