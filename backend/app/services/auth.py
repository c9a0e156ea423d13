from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.exceptions import AuthenticationError, ValidationError
from app.schemas.auth import AuthEnvelope, MeEnvelope
from app.security import create_access_token, verify_password
from app.services.user import build_user_response, create_user, get_user_by_email, get_user_or_404

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from app.schemas.auth import AuthContext, LoginRequest, RegisterRequest

logger = logging.getLogger(__name__)


async def register(session: AsyncSession, payload: RegisterRequest) -> AuthEnvelope:
    """Create an account and return a session token for it."""
    user = await create_user(
        session,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
    )
    await session.commit()
    await session.refresh(user)
    return AuthEnvelope(
        message="Account created successfully",
        token=create_access_token(user),
        user=build_user_response(user),
    )


async def login(session: AsyncSession, payload: LoginRequest) -> AuthEnvelope:
    """Exchange email/password for a session token."""
    user = await get_user_by_email(session, payload.email)
    if user is None:
        raise AuthenticationError("Invalid email or password")
    if user.password_hash is None:
        raise ValidationError("This account has no password set")
    if not verify_password(payload.password, user.password_hash):
        logger.info("Failed login for %s", user.id)
        raise AuthenticationError("Invalid email or password")

    return AuthEnvelope(
        message="Login successful",
        token=create_access_token(user),
        user=build_user_response(user),
    )


async def get_me(session: AsyncSession, auth: AuthContext) -> MeEnvelope:
    user = await get_user_or_404(session, auth.user_id)
    return MeEnvelope(user=build_user_response(user))
