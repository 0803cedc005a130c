"""
Authentication dependencies for FastAPI routes.
"""

from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from crokers.services import auth_service

# auto_error=False so a missing header gets the same 401 body as a bad token
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """
    Dependency to get the caller's identity from the bearer token.

    Only the signature and expiry are checked; there is no database lookup
    and no revocation list.

    Returns:
        {"id": user id, "email": email}

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("missing bearer token")

    payload = auth_service.verify_token(credentials.credentials)
    if payload is None:
        raise _unauthorized("invalid or expired token")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _unauthorized("invalid token payload")

    return {"id": user_id, "email": payload.get("email")}
