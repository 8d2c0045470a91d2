import secrets
import datetime
from typing import Optional

import jwt
from passlib.context import CryptContext

from stockroom.config import get_settings

settings = get_settings()

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a plain-text password with the configured scheme."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plain-text password against its stored hash."""
    return pwd_context.verify(plain_password, hashed_password)


def generate_token() -> str:
    """Random 32-character token used for email verification and password reset links."""
    return secrets.token_hex(16)


def create_access_token(user_id: int, role: str) -> str:
    """
    Issue a signed JWT for an authenticated user.

    Args:
        user_id: ID stored in the ``id`` claim
        role: Role stored in the ``role`` claim

    Returns:
        Encoded token string
    """
    payload = {
        "id": user_id,
        "role": role,
        "exp": datetime.datetime.now(datetime.timezone.utc)
        + datetime.timedelta(minutes=settings.JWT_EXPIRATION_MINUTES),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Return the token claims, or None if the token is invalid or expired."""
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.InvalidTokenError:
        return None
