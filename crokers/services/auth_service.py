"""
Authentication service: password hashing, JWT issuance and verification,
registration and login.
"""

import os
import re
import logging
from datetime import timedelta
from typing import Dict, Optional

import bcrypt
from jose import jwt, JWTError
from dotenv import load_dotenv
from sqlalchemy.ext.asyncio import AsyncSession

from crokers.services import user_service
from crokers.utils.datetime_utils import utcnow, isoformat
from crokers.utils.exceptions import AuthError, ValidationError

load_dotenv()

logger = logging.getLogger(__name__)

JWT_SECRET_KEY = os.getenv("JWT_SECRET", "dev-secret-change-me")
JWT_ISSUER = os.getenv("JWT_ISSUER", "crokers-api")
JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("JWT_EXP_MINUTES", "60"))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

PASSWORD_MIN_LENGTH = 8
# bcrypt only looks at the first 72 bytes and newer releases refuse longer input
PASSWORD_MAX_BYTES = 72
INVALID_CREDENTIALS_MESSAGE = "invalid credentials"

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

if "JWT_SECRET" not in os.environ and os.getenv("ENV") == "production":
    logger.warning("JWT_SECRET is not set; using the development fallback secret")


def hash_password(password: str) -> str:
    """Hash a password with bcrypt using BCRYPT_ROUNDS."""
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


_DUMMY_PASSWORD_HASH: Optional[str] = None


def _dummy_hash() -> str:
    """Hash checked for unknown emails so login time does not reveal accounts."""
    global _DUMMY_PASSWORD_HASH
    if _DUMMY_PASSWORD_HASH is None:
        _DUMMY_PASSWORD_HASH = hash_password("crokers-no-such-user")
    return _DUMMY_PASSWORD_HASH


def create_access_token(data: Dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed HS256 access token.

    Args:
        data: Claims to embed (callers put the user id in "sub")
        expires_delta: Lifetime, JWT_EXP_MINUTES by default

    Returns:
        Encoded JWT
    """
    now = utcnow()
    expire = now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = dict(data)
    to_encode.update({"iss": JWT_ISSUER, "iat": now, "exp": expire})
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> Optional[Dict]:
    """
    Decode a token, checking only signature and expiry.

    Returns:
        The claims, or None if the token is invalid or expired
    """
    try:
        return jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None


def normalize_email(email: Optional[str]) -> str:
    """Trim, lower-case and validate an email address."""
    email = (email or "").strip().lower()
    if not EMAIL_RE.match(email):
        raise ValidationError("a valid email is required")
    return email


async def register(
    session: AsyncSession, email: str, password: str, name: Optional[str] = None
) -> Dict:
    """
    Register a new account with the default role.

    Raises:
        ValidationError: Bad email, password shorter than 8 characters or
            longer than 72 bytes
        ConflictError: Email already in use
    """
    email = normalize_email(email)
    if password is None or len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"password must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValidationError(f"password must be at most {PASSWORD_MAX_BYTES} bytes")
    display_name = (name or "").strip() or email.split("@", 1)[0]
    return await user_service.create_user(
        session, email=email, password_hash=hash_password(password), name=display_name
    )


async def login(session: AsyncSession, email: str, password: str) -> Dict:
    """
    Verify credentials and issue a bearer token.

    Unknown email and wrong password raise the same AuthError, and both pay
    for one bcrypt check.

    Returns:
        {"token", "expires_at", "user"}
    """
    normalized = (email or "").strip().lower()
    user = await user_service.get_user_by_email(session, normalized) if normalized else None
    password_hash = user.password_hash if user is not None else _dummy_hash()
    if not verify_password(password or "", password_hash) or user is None:
        logger.info("Failed login attempt")
        raise AuthError(INVALID_CREDENTIALS_MESSAGE)

    expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    expires_at = utcnow() + expires_delta
    token = create_access_token({"sub": str(user.id), "email": user.email}, expires_delta=expires_delta)
    logger.info(f"User {user.id} logged in")
    return {
        "token": token,
        "expires_at": isoformat(expires_at),
        "user": user_service.user_to_dict(user),
    }
