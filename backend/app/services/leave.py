# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from app.exceptions import (
    AuthorizationError,
    InsufficientBalanceError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from app.models.enums import AdminOverride, AuditAction, AuditEntityType, LeaveStatus, LeaveType, Role
from app.models.leave import LeaveRequest
from app.models.user import User
from app.schemas.leave import (
    LeaveBalance,
    LeaveBalanceEnvelope,
    LeaveEnvelope,
    LeaveListEnvelope,
    LeaveResponse,
)
from app.services.allocation import get_allocation_for_employee, increment_leaves_taken
from app.services.audit import model_to_audit_dict, write_audit_log
from app.services.team import is_managed, managed_employee_ids
from app.services.transition import apply_transition
from app.services.user import get_user, load_user_summaries

if TYPE_CHECKING:
    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession

    from app.schemas.auth import AuthContext
    from app.schemas.common import UserSummary
    from app.schemas.leave import ApplyLeavePayload, LeaveOverridePayload, LeaveReviewPayload

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_leave_response(leave: LeaveRequest, users: dict[uuid.UUID, UserSummary]) -> LeaveResponse:
    """Map a leave model to its response schema, expanding related users from ``users``."""
    return LeaveResponse(
        id=leave.id,
        employee_id=leave.employee_id,
        employee=users.get(leave.employee_id),
        leave_type=LeaveType(leave.leave_type),
        start_date=leave.start_date,
        end_date=leave.end_date,
        reason=leave.reason,
        number_of_days=leave.number_of_days,
        status=LeaveStatus(leave.status),
        manager_note=leave.manager_note,
        reviewed_by=leave.reviewed_by,
        reviewer=users.get(leave.reviewed_by) if leave.reviewed_by else None,
        reviewed_at=leave.reviewed_at,
        escalated_to_admin=leave.escalated_to_admin,
        admin_override=AdminOverride(leave.admin_override),
        admin_note=leave.admin_note,
        admin_reviewed_by=leave.admin_reviewed_by,
        admin_reviewer=users.get(leave.admin_reviewed_by) if leave.admin_reviewed_by else None,
        admin_reviewed_at=leave.admin_reviewed_at,
        created_at=leave.created_at,
    )


async def _build_leave_responses(session: AsyncSession, leaves: list[LeaveRequest]) -> list[LeaveResponse]:
    users = await load_user_summaries(
        session,
        [user_id for leave in leaves for user_id in (leave.employee_id, leave.reviewed_by, leave.admin_reviewed_by)],
    )
    return [_build_leave_response(leave, users) for leave in leaves]


async def _leave_envelope(session: AsyncSession, leave: LeaveRequest, message: str | None = None) -> LeaveEnvelope:
    (response,) = await _build_leave_responses(session, [leave])
    return LeaveEnvelope(message=message, leave=response)


async def _list_envelope(session: AsyncSession, query: Select[tuple[LeaveRequest]]) -> LeaveListEnvelope:
    result = await session.execute(query.order_by(col(LeaveRequest.created_at).desc()))
    items = await _build_leave_responses(session, list(result.scalars().all()))
    return LeaveListEnvelope(count=len(items), leaves=items)


async def _get_leave_or_404(session: AsyncSession, leave_id: uuid.UUID) -> LeaveRequest:
    result = await session.execute(select(LeaveRequest).where(col(LeaveRequest.id) == leave_id))
    leave = result.scalar_one_or_none()
    if leave is None:
        raise NotFoundError("Leave request not found")
    return leave


def _require_pending(leave: LeaveRequest) -> None:
    if leave.status != LeaveStatus.PENDING:
        raise InvalidStateError(f"Leave request has already been {leave.status}")


async def _charge_ledger(session: AsyncSession, leave: LeaveRequest) -> None:
    """Consume allocation days for an approved leave. Unpaid leave is never charged."""
    if leave.leave_type != LeaveType.UNPAID:
        await increment_leaves_taken(session, leave.employee_id, leave.number_of_days)


async def _finish_transition(
    session: AsyncSession,
    auth: AuthContext,
    leave: LeaveRequest,
    before: dict,
    action: AuditAction,
    message: str,
) -> LeaveEnvelope:
    """Reload the transitioned row, audit it and commit."""
    await session.refresh(leave)
    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.LEAVE,
        entity_id=leave.id,
        action=action,
        before_json=before,
        after_json=model_to_audit_dict(leave),
    )
    await session.commit()
    await session.refresh(leave)
    logger.info("Leave %s: %s by %s", leave.id, action.value, auth.user_id)
    return await _leave_envelope(session, leave, message)


# ---------------------------------------------------------------------------
# Owner operations
# ---------------------------------------------------------------------------


async def apply_leave(session: AsyncSession, auth: AuthContext, payload: ApplyLeavePayload) -> LeaveEnvelope:
    """Open a pending leave case.

    The balance check is advisory: it compares against what remains right now
    and reserves nothing.
    """
    if payload.end_date < payload.start_date:
        raise ValidationError("End date cannot be before start date")

    number_of_days = (payload.end_date - payload.start_date).days + 1

    allocation = await get_allocation_for_employee(session, auth.user_id)
    if (
        allocation is not None
        and payload.leave_type != LeaveType.UNPAID
        and number_of_days > allocation.leaves_remaining
    ):
        raise InsufficientBalanceError(allocation.leaves_remaining)

    leave = LeaveRequest(
        employee_id=auth.user_id,
        leave_type=payload.leave_type.value,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reason=payload.reason,
        number_of_days=number_of_days,
    )
    session.add(leave)
    await session.flush()
    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.LEAVE,
        entity_id=leave.id,
        action=AuditAction.SUBMIT,
        after_json=model_to_audit_dict(leave),
    )
    await session.commit()
    await session.refresh(leave)
    return await _leave_envelope(session, leave, "Leave request submitted successfully")


async def withdraw_leave(session: AsyncSession, auth: AuthContext, leave_id: uuid.UUID) -> LeaveEnvelope:
    leave = await _get_leave_or_404(session, leave_id)
    if leave.employee_id != auth.user_id:
        raise AuthorizationError("You can only withdraw your own leave requests")
    if leave.status != LeaveStatus.PENDING:
        raise InvalidStateError("Only pending leave requests can be withdrawn")

    before = model_to_audit_dict(leave)
    await apply_transition(
        session,
        LeaveRequest,
        leave.id,
        expected={"status": LeaveStatus.PENDING.value},
        values={"status": LeaveStatus.WITHDRAWN.value},
        conflict_message="Only pending leave requests can be withdrawn",
    )
    return await _finish_transition(
        session, auth, leave, before, AuditAction.WITHDRAW, "Leave request withdrawn successfully"
    )


async def list_my_leaves(
    session: AsyncSession,
    auth: AuthContext,
    status_filter: LeaveStatus | None = None,
) -> LeaveListEnvelope:
    query = select(LeaveRequest).where(col(LeaveRequest.employee_id) == auth.user_id)
    if status_filter is not None:
        query = query.where(col(LeaveRequest.status) == status_filter.value)
    return await _list_envelope(session, query)


async def get_my_balance(session: AsyncSession, auth: AuthContext) -> LeaveBalanceEnvelope:
    """Allocation figures plus pending count. All zeros when no allocation exists."""
    allocation = await get_allocation_for_employee(session, auth.user_id)
    pending = await session.execute(
        select(func.count())
        .select_from(LeaveRequest)
        .where(col(LeaveRequest.employee_id) == auth.user_id, col(LeaveRequest.status) == LeaveStatus.PENDING.value)
    )
    total = allocation.total_leaves if allocation else 0
    taken = allocation.leaves_taken if allocation else 0
    return LeaveBalanceEnvelope(
        balance=LeaveBalance(
            total_leaves=total,
            leaves_taken=taken,
            leaves_remaining=total - taken,
            pending_requests=pending.scalar_one(),
        )
    )


# ---------------------------------------------------------------------------
# Manager review
# ---------------------------------------------------------------------------


async def list_team_leaves(
    session: AsyncSession,
    auth: AuthContext,
    status_filter: LeaveStatus | None = None,
    employee_id: uuid.UUID | None = None,
) -> LeaveListEnvelope:
    """Cases owned by members of the caller's teams. ``employee_id`` narrows within that set."""
    member_ids = await managed_employee_ids(session, auth.user_id)
    if employee_id is not None:
        member_ids &= {employee_id}
    if not member_ids:
        return LeaveListEnvelope(count=0, leaves=[])

    query = select(LeaveRequest).where(col(LeaveRequest.employee_id).in_(member_ids))
    if status_filter is not None:
        query = query.where(col(LeaveRequest.status) == status_filter.value)
    return await _list_envelope(session, query)


async def review_leave(
    session: AsyncSession,
    auth: AuthContext,
    leave_id: uuid.UUID,
    payload: LeaveReviewPayload,
) -> LeaveEnvelope:
    """Manager decision on a team member's pending leave.

    Approval charges the allocation in the same transaction. A rejection of an
    employee's leave is escalated for admin override.
    """
    leave = await _get_leave_or_404(session, leave_id)
    _require_pending(leave)
    if not await is_managed(session, auth.user_id, leave.employee_id):
        raise AuthorizationError("This employee is not in your team")

    owner = await get_user(session, leave.employee_id)
    approved = payload.status == LeaveStatus.APPROVED
    escalate = not approved and owner is not None and owner.role == Role.EMPLOYEE

    before = model_to_audit_dict(leave)
    await apply_transition(
        session,
        LeaveRequest,
        leave.id,
        expected={"status": LeaveStatus.PENDING.value},
        values={
            "status": payload.status,
            "manager_note": payload.note,
            "reviewed_by": auth.user_id,
            "reviewed_at": datetime.now(UTC),
            "escalated_to_admin": escalate,
        },
        conflict_message="Leave request has already been reviewed",
    )
    if approved:
        await _charge_ledger(session, leave)

    return await _finish_transition(
        session,
        auth,
        leave,
        before,
        AuditAction.APPROVE if approved else AuditAction.ESCALATE if escalate else AuditAction.REJECT,
        f"Leave request {payload.status} successfully",
    )


# ---------------------------------------------------------------------------
# Admin review
# ---------------------------------------------------------------------------


async def list_manager_leaves(
    session: AsyncSession,
    status_filter: LeaveStatus | None = None,
) -> LeaveListEnvelope:
    """Leave cases applied for by managers, which only an admin can decide."""
    manager_ids = select(col(User.id)).where(col(User.role) == Role.MANAGER.value)
    query = select(LeaveRequest).where(col(LeaveRequest.employee_id).in_(manager_ids))
    if status_filter is not None:
        query = query.where(col(LeaveRequest.status) == status_filter.value)
    return await _list_envelope(session, query)


async def admin_review_leave(
    session: AsyncSession,
    auth: AuthContext,
    leave_id: uuid.UUID,
    payload: LeaveReviewPayload,
) -> LeaveEnvelope:
    """Admin decision on a manager's pending leave. Never escalates."""
    leave = await _get_leave_or_404(session, leave_id)
    owner = await get_user(session, leave.employee_id)
    if owner is None or owner.role != Role.MANAGER:
        raise AuthorizationError("Admins review manager leave requests only")
    _require_pending(leave)

    approved = payload.status == LeaveStatus.APPROVED
    before = model_to_audit_dict(leave)
    await apply_transition(
        session,
        LeaveRequest,
        leave.id,
        expected={"status": LeaveStatus.PENDING.value},
        values={
            "status": payload.status,
            "admin_note": payload.note,
            "admin_reviewed_by": auth.user_id,
            "admin_reviewed_at": datetime.now(UTC),
        },
        conflict_message="Leave request has already been reviewed",
    )
    if approved:
        await _charge_ledger(session, leave)

    return await _finish_transition(
        session,
        auth,
        leave,
        before,
        AuditAction.APPROVE if approved else AuditAction.REJECT,
        f"Leave request {payload.status} successfully",
    )


async def list_escalated_leaves(session: AsyncSession, resolved: bool | None = None) -> LeaveListEnvelope:
    """Escalated rejections. ``resolved`` selects overridden (True) or open (False) ones."""
    query = select(LeaveRequest).where(col(LeaveRequest.escalated_to_admin).is_(True))
    if resolved is True:
        query = query.where(col(LeaveRequest.admin_override) != AdminOverride.NONE.value)
    elif resolved is False:
        query = query.where(col(LeaveRequest.admin_override) == AdminOverride.NONE.value)
    return await _list_envelope(session, query)


async def override_leave(
    session: AsyncSession,
    auth: AuthContext,
    leave_id: uuid.UUID,
    payload: LeaveOverridePayload,
) -> LeaveEnvelope:
    """Resolve an escalated rejection once: approve it or uphold the rejection."""
    leave = await _get_leave_or_404(session, leave_id)
    if not leave.escalated_to_admin:
        raise InvalidStateError("This leave request has not been escalated")
    if leave.admin_override != AdminOverride.NONE:
        raise InvalidStateError(f"This escalation has already been resolved ({leave.admin_override})")

    approved = payload.decision == AdminOverride.APPROVED
    values: dict = {
        "admin_override": payload.decision,
        "admin_note": payload.note,
        "admin_reviewed_by": auth.user_id,
        "admin_reviewed_at": datetime.now(UTC),
    }
    if approved:
        values["status"] = LeaveStatus.APPROVED.value

    before = model_to_audit_dict(leave)
    await apply_transition(
        session,
        LeaveRequest,
        leave.id,
        expected={"escalated_to_admin": True, "admin_override": AdminOverride.NONE.value},
        values=values,
        conflict_message="This escalation has already been resolved",
    )
    if approved:
        await _charge_ledger(session, leave)

    return await _finish_transition(
        session,
        auth,
        leave,
        before,
        AuditAction.OVERRIDE if approved else AuditAction.UPHOLD,
        "Rejection overridden, leave approved" if approved else "Rejection upheld",
    )
