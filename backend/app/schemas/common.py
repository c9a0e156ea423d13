# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel, ConfigDict

from app.models.enums import Role


class UserSummary(BaseModel):
    """Related-user expansion embedded in case and team responses."""

    id: uuid.UUID
    name: str
    email: str
    role: Role
    avatar: str = ""


class Envelope(BaseModel):
    """Base success envelope: ``{success, message?}`` plus the resource fields."""

    success: bool = True
    message: str | None = None


class Payload(BaseModel):
    """Base request body: strings are trimmed before validation."""

    model_config = ConfigDict(str_strip_whitespace=True)
