# ruff: noqa: TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, status

from app.api.deps import CachesDep, ManagerDep
from app.db import SessionDep
from app.schemas.common import Envelope
from app.schemas.team import (
    CreateTeamRequest,
    ManagerOverviewResponse,
    TeamEnvelope,
    TeamListEnvelope,
    UpdateTeamRequest,
)
from app.schemas.user import EmployeeRefPayload
from app.services import overview as overview_service
from app.services import team as team_service

teams_router = APIRouter(prefix="/teams", tags=["teams"])


@teams_router.get("/overview", response_model=ManagerOverviewResponse)
async def manager_overview(session: SessionDep, caches: CachesDep, auth: ManagerDep) -> ManagerOverviewResponse:
    """Dashboard counts for the caller's teams. Served from a short-lived cache."""
    return await overview_service.get_manager_overview(session, auth.user_id, caches)


@teams_router.post("", response_model=TeamEnvelope, status_code=status.HTTP_201_CREATED)
async def create_team(payload: CreateTeamRequest, session: SessionDep, auth: ManagerDep) -> TeamEnvelope:
    return await team_service.create_team(session, auth, payload)


@teams_router.get("", response_model=TeamListEnvelope)
async def list_teams(session: SessionDep, auth: ManagerDep) -> TeamListEnvelope:
    return await team_service.list_my_teams(session, auth)


@teams_router.get("/{team_id}", response_model=TeamEnvelope)
async def get_team(team_id: uuid.UUID, session: SessionDep, auth: ManagerDep) -> TeamEnvelope:
    return await team_service.get_team(session, auth, team_id)


@teams_router.put("/{team_id}", response_model=TeamEnvelope)
async def update_team(
    team_id: uuid.UUID,
    payload: UpdateTeamRequest,
    session: SessionDep,
    auth: ManagerDep,
) -> TeamEnvelope:
    return await team_service.update_team(session, auth, team_id, payload)


@teams_router.delete("/{team_id}", response_model=Envelope)
async def delete_team(team_id: uuid.UUID, session: SessionDep, auth: ManagerDep) -> Envelope:
    await team_service.delete_team(session, auth, team_id)
    return Envelope(message="Team deleted successfully")


@teams_router.post("/{team_id}/members", response_model=TeamEnvelope)
async def add_member(
    team_id: uuid.UUID,
    payload: EmployeeRefPayload,
    session: SessionDep,
    auth: ManagerDep,
) -> TeamEnvelope:
    """Add an employee to one of the caller's teams."""
    return await team_service.add_member(session, auth, team_id, payload.employee_id)


@teams_router.delete("/{team_id}/members/{employee_id}", response_model=TeamEnvelope)
async def remove_member(
    team_id: uuid.UUID,
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: ManagerDep,
) -> TeamEnvelope:
    return await team_service.remove_member(session, auth, team_id, employee_id)
