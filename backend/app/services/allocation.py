# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlmodel import col

from app.exceptions import NotFoundError, ValidationError
from app.models.allocation import MAX_TOTAL_LEAVES, LeaveAllocation
from app.models.enums import AuditAction, AuditEntityType, Role
from app.models.user import User
from app.schemas.allocation import AllocationEnvelope, AllocationListEnvelope, AllocationResponse
from app.services.audit import model_to_audit_dict, write_audit_log
from app.services.user import build_user_summary, get_employee_or_404, load_user_summaries

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from app.schemas.allocation import SetAllocationPayload, UpdateAllocationPayload
    from app.schemas.auth import AuthContext
    from app.schemas.common import UserSummary

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_allocation_response(allocation: LeaveAllocation, employee: UserSummary | None) -> AllocationResponse:
    return AllocationResponse(
        id=allocation.id,
        employee_id=allocation.employee_id,
        employee=employee,
        total_leaves=allocation.total_leaves,
        leaves_taken=allocation.leaves_taken,
        leaves_remaining=allocation.leaves_remaining,
        created_at=allocation.created_at,
        updated_at=allocation.updated_at,
    )


def _check_total(total_leaves: int) -> None:
    if total_leaves < 0 or total_leaves > MAX_TOTAL_LEAVES:
        raise ValidationError(f"Total leaves must be between 0 and {MAX_TOTAL_LEAVES}")


async def get_allocation_for_employee(session: AsyncSession, employee_id: uuid.UUID) -> LeaveAllocation | None:
    result = await session.execute(select(LeaveAllocation).where(col(LeaveAllocation.employee_id) == employee_id))
    return result.scalar_one_or_none()


async def increment_leaves_taken(session: AsyncSession, employee_id: uuid.UUID, days: int) -> bool:
    """Add ``days`` to the employee's consumed counter inside the caller's transaction.

    Applies only when an allocation row exists; returns whether one did.
    Does not commit.
    """
    result = await session.execute(
        update(LeaveAllocation)
        .where(col(LeaveAllocation.employee_id) == employee_id)
        .values(leaves_taken=col(LeaveAllocation.leaves_taken) + days)
        .execution_options(synchronize_session=False)
    )
    applied = result.rowcount > 0  # type: ignore[attr-defined]
    if applied:
        logger.info("Ledger for %s incremented by %d", employee_id, days)
    return applied


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def set_allocation(
    session: AsyncSession,
    auth: AuthContext,
    payload: SetAllocationPayload,
) -> AllocationEnvelope:
    """Create or replace an employee's quota. Consumed days are left untouched."""
    _check_total(payload.total_leaves)
    employee = await get_employee_or_404(session, payload.employee_id)

    allocation = await get_allocation_for_employee(session, employee.id)
    if allocation is None:
        allocation = LeaveAllocation(employee_id=employee.id, total_leaves=payload.total_leaves)
        session.add(allocation)
        before = None
        action = AuditAction.CREATE
        message = "Leave allocation created successfully"
    else:
        before = model_to_audit_dict(allocation)
        allocation.total_leaves = payload.total_leaves
        action = AuditAction.UPDATE
        message = "Leave allocation updated successfully"

    await session.flush()
    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.ALLOCATION,
        entity_id=allocation.id,
        action=action,
        before_json=before,
        after_json=model_to_audit_dict(allocation),
    )
    await session.commit()
    await session.refresh(allocation)
    return AllocationEnvelope(
        message=message,
        allocation=_build_allocation_response(allocation, build_user_summary(employee)),
    )


async def update_allocation(
    session: AsyncSession,
    auth: AuthContext,
    allocation_id: uuid.UUID,
    payload: UpdateAllocationPayload,
) -> AllocationEnvelope:
    """Change the quota of an existing allocation; it may not drop below days already taken."""
    _check_total(payload.total_leaves)

    result = await session.execute(select(LeaveAllocation).where(col(LeaveAllocation.id) == allocation_id))
    allocation = result.scalar_one_or_none()
    if allocation is None:
        raise NotFoundError("Leave allocation not found")
    if payload.total_leaves < allocation.leaves_taken:
        raise ValidationError(
            f"Total leaves cannot be less than leaves already taken ({allocation.leaves_taken})"
        )

    before = model_to_audit_dict(allocation)
    allocation.total_leaves = payload.total_leaves
    await session.flush()
    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.ALLOCATION,
        entity_id=allocation.id,
        action=AuditAction.UPDATE,
        before_json=before,
        after_json=model_to_audit_dict(allocation),
    )
    await session.commit()
    await session.refresh(allocation)

    users = await load_user_summaries(session, [allocation.employee_id])
    return AllocationEnvelope(
        message="Leave allocation updated successfully",
        allocation=_build_allocation_response(allocation, users.get(allocation.employee_id)),
    )


async def list_allocations(session: AsyncSession) -> AllocationListEnvelope:
    """All allocations plus the employees that do not have one yet."""
    result = await session.execute(select(LeaveAllocation).order_by(col(LeaveAllocation.created_at).desc()))
    allocations = list(result.scalars().all())
    users = await load_user_summaries(session, (a.employee_id for a in allocations))

    allocated_ids = select(col(LeaveAllocation.employee_id))
    unallocated = await session.execute(
        select(User)
        .where(col(User.role) == Role.EMPLOYEE.value, col(User.id).not_in(allocated_ids))
        .order_by(col(User.name))
    )

    return AllocationListEnvelope(
        allocations=[_build_allocation_response(a, users.get(a.employee_id)) for a in allocations],
        unallocated_employees=[build_user_summary(u) for u in unallocated.scalars().all()],
    )
