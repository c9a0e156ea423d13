# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.common import Envelope, Payload, UserSummary


class CreateTeamRequest(Payload):
    name: str = Field(min_length=2, max_length=50)
    description: str = Field(default="", max_length=200)


class UpdateTeamRequest(Payload):
    name: str | None = Field(default=None, min_length=2, max_length=50)
    description: str | None = Field(default=None, max_length=200)


class TeamResponse(BaseModel):
    """A team with its members expanded."""

    id: uuid.UUID
    name: str
    description: str
    manager_id: uuid.UUID
    members: list[UserSummary]
    created_at: datetime


class TeamEnvelope(Envelope):
    team: TeamResponse


class TeamListEnvelope(Envelope):
    count: int
    teams: list[TeamResponse]


class ManagerOverviewStats(BaseModel):
    teams: int
    total_members: int
    pending_leaves: int
    approved_leaves: int
    rejected_leaves: int
    pending_complaints: int
    accepted_complaints: int


class RecentCase(BaseModel):
    """Compact pending-case row shown on the manager dashboard."""

    id: uuid.UUID
    employee: UserSummary | None
    title: str
    status: str
    created_at: datetime


class ManagerOverviewResponse(Envelope):
    """Manager dashboard aggregate."""

    stats: ManagerOverviewStats
    recent_leaves: list[RecentCase]
    recent_complaints: list[RecentCase]
