# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from app.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.enums import AuditAction, AuditEntityType
from app.models.team import Team, TeamMember
from app.schemas.team import TeamEnvelope, TeamListEnvelope, TeamResponse
from app.services.audit import model_to_audit_dict, write_audit_log
from app.services.user import get_employee_or_404, load_user_summaries

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from app.schemas.auth import AuthContext
    from app.schemas.team import CreateTeamRequest, UpdateTeamRequest

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Authorization predicate
# ---------------------------------------------------------------------------


async def managed_employee_ids(session: AsyncSession, manager_id: uuid.UUID) -> set[uuid.UUID]:
    """Return the union of members across every team owned by ``manager_id``."""
    result = await session.execute(
        select(col(TeamMember.employee_id))
        .join(Team, col(Team.id) == col(TeamMember.team_id))
        .where(col(Team.manager_id) == manager_id)
    )
    return set(result.scalars().all())


async def is_managed(session: AsyncSession, manager_id: uuid.UUID, employee_id: uuid.UUID) -> bool:
    """True if ``employee_id`` is a member of at least one team owned by ``manager_id``.

    Evaluated against current membership on every call; nothing is cached on
    the cases it guards, so removing a member immediately revokes access.
    """
    result = await session.execute(
        select(col(TeamMember.employee_id))
        .join(Team, col(Team.id) == col(TeamMember.team_id))
        .where(col(Team.manager_id) == manager_id, col(TeamMember.employee_id) == employee_id)
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


async def _build_team_responses(session: AsyncSession, teams: list[Team]) -> list[TeamResponse]:
    """Map teams to responses with members expanded, using two queries total."""
    if not teams:
        return []
    result = await session.execute(
        select(TeamMember)
        .where(col(TeamMember.team_id).in_([t.id for t in teams]))
        .order_by(col(TeamMember.added_at))
    )
    memberships = list(result.scalars().all())
    users = await load_user_summaries(session, (m.employee_id for m in memberships))

    members_by_team: dict[uuid.UUID, list[uuid.UUID]] = {t.id: [] for t in teams}
    for membership in memberships:
        members_by_team[membership.team_id].append(membership.employee_id)

    return [
        TeamResponse(
            id=team.id,
            name=team.name,
            description=team.description,
            manager_id=team.manager_id,
            members=[users[m] for m in members_by_team[team.id] if m in users],
            created_at=team.created_at,
        )
        for team in teams
    ]


async def _build_team_response(session: AsyncSession, team: Team) -> TeamResponse:
    return (await _build_team_responses(session, [team]))[0]


async def _get_own_team_or_404(session: AsyncSession, manager_id: uuid.UUID, team_id: uuid.UUID) -> Team:
    """Fetch a team owned by the caller. Other managers' teams are reported as missing."""
    result = await session.execute(
        select(Team).where(col(Team.id) == team_id, col(Team.manager_id) == manager_id)
    )
    team = result.scalar_one_or_none()
    if team is None:
        raise NotFoundError("Team not found")
    return team


async def _ensure_unique_name(
    session: AsyncSession,
    manager_id: uuid.UUID,
    name: str,
    exclude_team_id: uuid.UUID | None = None,
) -> None:
    query = select(Team).where(col(Team.manager_id) == manager_id, col(Team.name) == name)
    if exclude_team_id is not None:
        query = query.where(col(Team.id) != exclude_team_id)
    result = await session.execute(query)
    if result.scalar_one_or_none() is not None:
        raise ConflictError("You already have a team with this name")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_team(session: AsyncSession, auth: AuthContext, payload: CreateTeamRequest) -> TeamEnvelope:
    await _ensure_unique_name(session, auth.user_id, payload.name)

    team = Team(name=payload.name, description=payload.description, manager_id=auth.user_id)
    session.add(team)
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("You already have a team with this name") from None

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.TEAM,
        entity_id=team.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(team),
    )
    await session.commit()
    await session.refresh(team)
    return TeamEnvelope(message="Team created successfully", team=await _build_team_response(session, team))


async def list_my_teams(session: AsyncSession, auth: AuthContext) -> TeamListEnvelope:
    result = await session.execute(
        select(Team).where(col(Team.manager_id) == auth.user_id).order_by(col(Team.created_at).desc())
    )
    teams = list(result.scalars().all())
    items = await _build_team_responses(session, teams)
    return TeamListEnvelope(count=len(items), teams=items)


async def get_team(session: AsyncSession, auth: AuthContext, team_id: uuid.UUID) -> TeamEnvelope:
    team = await _get_own_team_or_404(session, auth.user_id, team_id)
    return TeamEnvelope(team=await _build_team_response(session, team))


async def update_team(
    session: AsyncSession,
    auth: AuthContext,
    team_id: uuid.UUID,
    payload: UpdateTeamRequest,
) -> TeamEnvelope:
    team = await _get_own_team_or_404(session, auth.user_id, team_id)
    before = model_to_audit_dict(team)

    if payload.name is not None and payload.name != team.name:
        await _ensure_unique_name(session, auth.user_id, payload.name, exclude_team_id=team.id)
        team.name = payload.name
    if payload.description is not None:
        team.description = payload.description

    await session.flush()
    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.TEAM,
        entity_id=team.id,
        action=AuditAction.UPDATE,
        before_json=before,
        after_json=model_to_audit_dict(team),
    )
    await session.commit()
    await session.refresh(team)
    return TeamEnvelope(message="Team updated successfully", team=await _build_team_response(session, team))


async def delete_team(session: AsyncSession, auth: AuthContext, team_id: uuid.UUID) -> None:
    team = await _get_own_team_or_404(session, auth.user_id, team_id)
    before = model_to_audit_dict(team)

    await session.execute(delete(TeamMember).where(col(TeamMember.team_id) == team.id))
    await session.delete(team)
    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.TEAM,
        entity_id=team_id,
        action=AuditAction.DELETE,
        before_json=before,
    )
    await session.commit()
    logger.info("Manager %s deleted team %s", auth.user_id, team_id)


async def add_member(
    session: AsyncSession,
    auth: AuthContext,
    team_id: uuid.UUID,
    employee_id: uuid.UUID,
) -> TeamEnvelope:
    """Add an existing employee to one of the caller's teams."""
    team = await _get_own_team_or_404(session, auth.user_id, team_id)
    employee = await get_employee_or_404(session, employee_id)

    existing = await session.execute(
        select(TeamMember).where(col(TeamMember.team_id) == team.id, col(TeamMember.employee_id) == employee.id)
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(f"{employee.name} is already in this team")

    session.add(TeamMember(team_id=team.id, employee_id=employee.id))
    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.TEAM,
        entity_id=team.id,
        action=AuditAction.ADD_MEMBER,
        after_json={"employee_id": str(employee.id)},
    )
    await session.commit()
    logger.info("Added employee %s to team %s", employee.id, team.id)
    return TeamEnvelope(
        message=f"{employee.name} added to team successfully",
        team=await _build_team_response(session, team),
    )


async def remove_member(
    session: AsyncSession,
    auth: AuthContext,
    team_id: uuid.UUID,
    employee_id: uuid.UUID,
) -> TeamEnvelope:
    team = await _get_own_team_or_404(session, auth.user_id, team_id)

    result = await session.execute(
        delete(TeamMember).where(col(TeamMember.team_id) == team.id, col(TeamMember.employee_id) == employee_id)
    )
    if result.rowcount == 0:  # type: ignore[attr-defined]
        raise ValidationError("Employee is not in this team")

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.TEAM,
        entity_id=team.id,
        action=AuditAction.REMOVE_MEMBER,
        before_json={"employee_id": str(employee_id)},
    )
    await session.commit()
    logger.info("Removed employee %s from team %s", employee_id, team.id)
    return TeamEnvelope(
        message="Member removed from team successfully",
        team=await _build_team_response(session, team),
    )
