"""Security utilities for access tokens and password hashing."""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError

from app.config import settings
from app.schemas.auth import TokenPayload
from app.schemas.users import UserRole

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def create_access_token(
    user_id: int,
    role: UserRole | str,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a JWT access token for a user.

    The user ID goes in ``sub`` as a string, as JWT requires, and the role in
    ``role`` so clients can pick the right dashboard without another call.
    Authorization still reads the role from the database.

    Args:
        user_id: User ID
        role: User role
        expires_delta: Optional expiration time delta

    Returns:
        Encoded JWT token
    """
    now = datetime.now(UTC)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))

    claims = {
        "sub": str(user_id),
        "role": UserRole(role).value,
        "type": "access",
        "exp": expire,
        "iat": now,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenPayload | None:
    """
    Decode and validate a JWT access token.

    Args:
        token: JWT token to decode

    Returns:
        Token claims, or None if the token is expired, forged or malformed
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        return TokenPayload.model_validate(payload)
    except (JWTError, ValidationError):
        return None
