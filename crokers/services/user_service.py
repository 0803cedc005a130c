"""
User service layer for user account database operations.
"""

from typing import Optional, Dict
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from crokers.database.models import User, UserRole
from crokers.utils.datetime_utils import isoformat
from crokers.utils.exceptions import ValidationError, NotFoundError, ConflictError
import logging

logger = logging.getLogger(__name__)

EMAIL_IN_USE_MESSAGE = "email already in use"
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100


def user_to_dict(user: User) -> Dict:
    """Serialize a user. The password hash is never included."""
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "image": user.image,
        "created_at": isoformat(user.created_at),
        "updated_at": isoformat(user.updated_at),
    }


async def create_user(
    session: AsyncSession, email: str, password_hash: str, name: str, role: str = UserRole.USER.value
) -> Dict:
    """
    Create a new user account.

    Args:
        session: Database session
        email: Normalized (lower-case) email
        password_hash: bcrypt hash of the password
        name: Display name
        role: Account role, "user" by default

    Returns:
        User dictionary

    Raises:
        ConflictError: If the email is already registered
    """
    if await get_user_by_email(session, email) is not None:
        raise ConflictError(EMAIL_IN_USE_MESSAGE)

    user = User(email=email, password_hash=password_hash, name=name, role=role)
    session.add(user)
    try:
        await session.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same email
        await session.rollback()
        raise ConflictError(EMAIL_IN_USE_MESSAGE)
    await session.refresh(user)
    logger.info(f"Created user {user.id}")
    return user_to_dict(user)


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    """
    Get the user row for an email, or None.

    Returns the ORM object (not a dict) since login needs the password hash.
    """
    result = await session.execute(select(User).where(User.email == email).limit(1))
    return result.scalar_one_or_none()


async def get_user_by_id(session: AsyncSession, user_id: int) -> Dict:
    """
    Get user by ID.

    Raises:
        NotFoundError: If no such user exists
    """
    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("user not found")
    return user_to_dict(user)


async def update_user_role(session: AsyncSession, user_id: int, role: str) -> Dict:
    """Set a user's role to one of admin, user or guest."""
    role = (role or "").strip().lower()
    if role not in {r.value for r in UserRole}:
        raise ValidationError("role must be one of: admin, user, guest")
    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("user not found")
    user.role = role
    await session.commit()
    await session.refresh(user)
    logger.info(f"User {user_id} role set to {role}")
    return user_to_dict(user)


async def update_user_name(session: AsyncSession, user_id: int, name: str) -> Dict:
    """Rename a user. Names are trimmed and must be 2-100 characters."""
    name = (name or "").strip()
    if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
        raise ValidationError(
            f"name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters"
        )
    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("user not found")
    user.name = name
    await session.commit()
    await session.refresh(user)
    return user_to_dict(user)
