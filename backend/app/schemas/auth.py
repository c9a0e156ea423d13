# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field

from app.models.enums import Role
from app.schemas.common import Envelope, Payload

EMAIL_PATTERN = r"^\S+@\S+\.\S+$"

# bcrypt rejects longer inputs; counted in UTF-8 bytes, not characters.
PASSWORD_MAX_BYTES = 72


def _within_bcrypt_limit(value: str) -> str:
    if len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")
    return value


NewPassword = Annotated[str, Field(min_length=6, max_length=PASSWORD_MAX_BYTES), AfterValidator(_within_bcrypt_limit)]


class AuthContext(BaseModel):
    """Identity carried by a verified session token."""

    user_id: uuid.UUID
    email: str
    role: Role


class RegisterRequest(Payload):
    """Request body for self-registration."""

    name: str = Field(min_length=2, max_length=50)
    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)
    password: NewPassword
    role: Role


class LoginRequest(Payload):
    """Request body for email/password login."""

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=PASSWORD_MAX_BYTES)


class UserResponse(BaseModel):
    """Full profile of a user, never including credentials."""

    id: uuid.UUID
    name: str
    email: str
    role: Role
    avatar: str
    designation: str
    manager_id: uuid.UUID | None
    created_at: datetime


class AuthEnvelope(Envelope):
    """Login/registration response carrying the session token."""

    token: str
    user: UserResponse


class MeEnvelope(Envelope):
    """Current-user response."""

    user: UserResponse
