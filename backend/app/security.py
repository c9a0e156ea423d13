"""Password hashing and session token issuance/verification."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from app.config import get_settings
from app.exceptions import AuthenticationError
from app.models.enums import Role
from app.schemas.auth import AuthContext

if TYPE_CHECKING:
    from app.models.user import User


def hash_password(password: str) -> str:
    """Hash a password with bcrypt. Request schemas keep inputs within its 72-byte UTF-8 limit."""
    salt = bcrypt.gensalt(rounds=get_settings().bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Check a password against its stored hash. Accounts without a hash never match."""
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(user: User, expires_minutes: int | None = None) -> str:
    """Issue a signed token carrying ``{sub, email, role}``."""
    settings = get_settings()
    if expires_minutes is None:
        expires_minutes = settings.access_token_expire_minutes
    claims = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role,
        "exp": datetime.now(UTC) + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> AuthContext:
    """Verify a token and return the identity it carries."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        raise AuthenticationError("Token expired. Please login again.") from None
    except JWTError:
        raise AuthenticationError("Invalid token.") from None

    try:
        return AuthContext(
            user_id=uuid.UUID(payload["sub"]),
            email=payload.get("email", ""),
            role=Role(payload["role"]),
        )
    except (KeyError, ValueError):
        raise AuthenticationError("Invalid token.") from None
