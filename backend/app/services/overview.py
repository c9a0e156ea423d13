# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from app.models.allocation import LeaveAllocation
from app.models.complaint import Complaint
from app.models.enums import ComplaintStatus, LeaveStatus, Role
from app.models.leave import LeaveRequest
from app.models.team import Team, TeamMember
from app.models.user import User
from app.schemas.team import ManagerOverviewResponse, ManagerOverviewStats, RecentCase
from app.schemas.user import AdminOverviewResponse, AdminOverviewStats
from app.services.team import managed_employee_ids
from app.services.user import build_user_summary, load_user_summaries

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from app.services.cache import OverviewCaches

logger = logging.getLogger(__name__)

RECENT_CASES_LIMIT = 3
RECENT_USERS_LIMIT = 5

_ADMIN_KEY = "admin"


async def _count_by_status(
    session: AsyncSession,
    model: type[LeaveRequest] | type[Complaint],
    owner_ids: set[uuid.UUID],
) -> dict[str, int]:
    result = await session.execute(
        select(col(model.status), func.count())
        .where(col(model.employee_id).in_(owner_ids))
        .group_by(col(model.status))
    )
    return {status: count for status, count in result.all()}


async def get_manager_overview(
    session: AsyncSession,
    manager_id: uuid.UUID,
    caches: OverviewCaches,
) -> ManagerOverviewResponse:
    """Dashboard counts and the most recent pending cases across the manager's teams."""
    cached = caches.manager.get(manager_id)
    if cached is not None:
        return cached
    logger.debug("Building manager overview for %s", manager_id)

    team_count = await session.execute(
        select(func.count()).select_from(Team).where(col(Team.manager_id) == manager_id)
    )
    member_slots = await session.execute(
        select(func.count())
        .select_from(TeamMember)
        .join(Team, col(Team.id) == col(TeamMember.team_id))
        .where(col(Team.manager_id) == manager_id)
    )
    member_ids = await managed_employee_ids(session, manager_id)

    leave_counts: dict[str, int] = {}
    complaint_counts: dict[str, int] = {}
    recent_leaves: list[RecentCase] = []
    recent_complaints: list[RecentCase] = []

    if member_ids:
        leave_counts = await _count_by_status(session, LeaveRequest, member_ids)
        complaint_counts = await _count_by_status(session, Complaint, member_ids)

        leaves = (
            await session.execute(
                select(LeaveRequest)
                .where(
                    col(LeaveRequest.employee_id).in_(member_ids),
                    col(LeaveRequest.status) == LeaveStatus.PENDING.value,
                )
                .order_by(col(LeaveRequest.created_at).desc())
                .limit(RECENT_CASES_LIMIT)
            )
        ).scalars().all()
        complaints = (
            await session.execute(
                select(Complaint)
                .where(
                    col(Complaint.employee_id).in_(member_ids),
                    col(Complaint.status) == ComplaintStatus.PENDING.value,
                )
                .order_by(col(Complaint.created_at).desc())
                .limit(RECENT_CASES_LIMIT)
            )
        ).scalars().all()

        users = await load_user_summaries(
            session, [*(x.employee_id for x in leaves), *(x.employee_id for x in complaints)]
        )
        recent_leaves = [
            RecentCase(
                id=leave.id,
                employee=users.get(leave.employee_id),
                title=f"{leave.leave_type.capitalize()} leave ({leave.number_of_days}d)",
                status=leave.status,
                created_at=leave.created_at,
            )
            for leave in leaves
        ]
        recent_complaints = [
            RecentCase(
                id=complaint.id,
                employee=users.get(complaint.employee_id),
                title=complaint.subject,
                status=complaint.status,
                created_at=complaint.created_at,
            )
            for complaint in complaints
        ]

    overview = ManagerOverviewResponse(
        stats=ManagerOverviewStats(
            teams=team_count.scalar_one(),
            total_members=member_slots.scalar_one(),
            pending_leaves=leave_counts.get(LeaveStatus.PENDING, 0),
            approved_leaves=leave_counts.get(LeaveStatus.APPROVED, 0),
            rejected_leaves=leave_counts.get(LeaveStatus.REJECTED, 0),
            pending_complaints=complaint_counts.get(ComplaintStatus.PENDING, 0),
            accepted_complaints=complaint_counts.get(ComplaintStatus.ACCEPTED, 0),
        ),
        recent_leaves=recent_leaves,
        recent_complaints=recent_complaints,
    )
    caches.manager.set(manager_id, overview)
    return overview


async def get_admin_overview(session: AsyncSession, caches: OverviewCaches) -> AdminOverviewResponse:
    """User counts by role, allocation coverage, newest users and employees without a quota."""
    cached = caches.admin.get(_ADMIN_KEY)
    if cached is not None:
        return cached
    logger.debug("Building admin overview")

    role_counts = dict((await session.execute(select(col(User.role), func.count()).group_by(col(User.role)))).all())
    allocated = (
        await session.execute(
            select(func.count())
            .select_from(LeaveAllocation)
            .join(User, col(User.id) == col(LeaveAllocation.employee_id))
            .where(col(User.role) == Role.EMPLOYEE.value)
        )
    ).scalar_one()
    employees = role_counts.get(Role.EMPLOYEE, 0)

    recent = (
        await session.execute(select(User).order_by(col(User.created_at).desc()).limit(RECENT_USERS_LIMIT))
    ).scalars().all()
    unallocated = (
        await session.execute(
            select(User)
            .where(
                col(User.role) == Role.EMPLOYEE.value,
                col(User.id).not_in(select(col(LeaveAllocation.employee_id))),
            )
            .order_by(col(User.created_at).desc())
            .limit(RECENT_USERS_LIMIT)
        )
    ).scalars().all()

    overview = AdminOverviewResponse(
        stats=AdminOverviewStats(
            total_users=sum(role_counts.values()),
            admins=role_counts.get(Role.ADMIN, 0),
            managers=role_counts.get(Role.MANAGER, 0),
            employees=employees,
            allocated=allocated,
            unallocated=employees - allocated,
        ),
        recent_users=[build_user_summary(u) for u in recent],
        unallocated_employees=[build_user_summary(u) for u in unallocated],
    )
    caches.admin.set(_ADMIN_KEY, overview)
    return overview
