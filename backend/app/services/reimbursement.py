# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import and_, or_, select
from sqlmodel import col

from app.exceptions import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from app.models.enums import AuditAction, AuditEntityType, ReimbursementCategory, ReimbursementStatus, Role
from app.models.reimbursement import Reimbursement
from app.schemas.reimbursement import ReimbursementEnvelope, ReimbursementListEnvelope, ReimbursementResponse
from app.services.audit import model_to_audit_dict, write_audit_log
from app.services.team import is_managed, managed_employee_ids
from app.services.transition import apply_transition
from app.services.user import load_user_summaries

if TYPE_CHECKING:
    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession

    from app.schemas.auth import AuthContext
    from app.schemas.reimbursement import AdminReviewPayload, ApplyReimbursementPayload, ManagerReviewPayload

logger = logging.getLogger(__name__)

MIN_AMOUNT = 1


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


async def _build_reimbursement_responses(
    session: AsyncSession,
    claims: list[Reimbursement],
) -> list[ReimbursementResponse]:
    users = await load_user_summaries(
        session,
        [uid for r in claims for uid in (r.applicant_id, r.manager_reviewed_by, r.admin_reviewed_by)],
    )
    return [
        ReimbursementResponse(
            id=r.id,
            applicant_id=r.applicant_id,
            applicant=users.get(r.applicant_id),
            applicant_role=Role(r.applicant_role),
            title=r.title,
            description=r.description,
            amount=r.amount,
            category=ReimbursementCategory(r.category),
            receipt=r.receipt,
            status=ReimbursementStatus(r.status),
            manager_reviewed_by=r.manager_reviewed_by,
            manager_reviewer=users.get(r.manager_reviewed_by) if r.manager_reviewed_by else None,
            manager_reviewed_at=r.manager_reviewed_at,
            manager_note=r.manager_note,
            admin_reviewed_by=r.admin_reviewed_by,
            admin_reviewer=users.get(r.admin_reviewed_by) if r.admin_reviewed_by else None,
            admin_reviewed_at=r.admin_reviewed_at,
            admin_note=r.admin_note,
            created_at=r.created_at,
        )
        for r in claims
    ]


async def _envelope(session: AsyncSession, claim: Reimbursement, message: str) -> ReimbursementEnvelope:
    (response,) = await _build_reimbursement_responses(session, [claim])
    return ReimbursementEnvelope(message=message, reimbursement=response)


async def _list(session: AsyncSession, query: Select[tuple[Reimbursement]]) -> ReimbursementListEnvelope:
    result = await session.execute(query.order_by(col(Reimbursement.created_at).desc()))
    items = await _build_reimbursement_responses(session, list(result.scalars().all()))
    return ReimbursementListEnvelope(count=len(items), reimbursements=items)


async def _get_reimbursement_or_404(session: AsyncSession, reimbursement_id: uuid.UUID) -> Reimbursement:
    result = await session.execute(select(Reimbursement).where(col(Reimbursement.id) == reimbursement_id))
    claim = result.scalar_one_or_none()
    if claim is None:
        raise NotFoundError("Reimbursement not found")
    return claim


async def _commit_transition(
    session: AsyncSession,
    auth: AuthContext,
    claim: Reimbursement,
    before: dict,
    action: AuditAction,
) -> None:
    await session.refresh(claim)
    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.REIMBURSEMENT,
        entity_id=claim.id,
        action=action,
        before_json=before,
        after_json=model_to_audit_dict(claim),
    )
    await session.commit()
    await session.refresh(claim)
    logger.info("Reimbursement %s: %s by %s", claim.id, action.value, auth.user_id)


# ---------------------------------------------------------------------------
# Applicant operations
# ---------------------------------------------------------------------------


async def apply_reimbursement(
    session: AsyncSession,
    auth: AuthContext,
    payload: ApplyReimbursementPayload,
) -> ReimbursementEnvelope:
    """File a claim. The applicant's current role fixes which approval path it takes."""
    if payload.amount < MIN_AMOUNT:
        raise ValidationError(f"Amount must be at least {MIN_AMOUNT}")

    claim = Reimbursement(
        applicant_id=auth.user_id,
        applicant_role=auth.role.value,
        title=payload.title,
        description=payload.description,
        amount=payload.amount,
        category=payload.category.value,
        receipt=payload.receipt,
    )
    session.add(claim)
    await session.flush()
    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.REIMBURSEMENT,
        entity_id=claim.id,
        action=AuditAction.SUBMIT,
        after_json=model_to_audit_dict(claim),
    )
    await session.commit()
    await session.refresh(claim)
    return await _envelope(session, claim, "Reimbursement request submitted")


async def list_my_reimbursements(
    session: AsyncSession,
    auth: AuthContext,
    status_filter: ReimbursementStatus | None = None,
) -> ReimbursementListEnvelope:
    query = select(Reimbursement).where(col(Reimbursement.applicant_id) == auth.user_id)
    if status_filter is not None:
        query = query.where(col(Reimbursement.status) == status_filter.value)
    return await _list(session, query)


async def withdraw_reimbursement(
    session: AsyncSession,
    auth: AuthContext,
    reimbursement_id: uuid.UUID,
) -> ReimbursementEnvelope:
    claim = await _get_reimbursement_or_404(session, reimbursement_id)
    if claim.applicant_id != auth.user_id:
        raise AuthorizationError("Not your reimbursement")
    if claim.status != ReimbursementStatus.PENDING:
        raise InvalidStateError("Only pending reimbursements can be withdrawn")

    before = model_to_audit_dict(claim)
    await apply_transition(
        session,
        Reimbursement,
        claim.id,
        expected={"status": ReimbursementStatus.PENDING.value},
        values={"status": ReimbursementStatus.WITHDRAWN.value},
        conflict_message="Only pending reimbursements can be withdrawn",
    )
    await _commit_transition(session, auth, claim, before, AuditAction.WITHDRAW)
    return await _envelope(session, claim, "Reimbursement withdrawn")


# ---------------------------------------------------------------------------
# Manager stage
# ---------------------------------------------------------------------------


async def list_team_reimbursements(
    session: AsyncSession,
    auth: AuthContext,
    status_filter: ReimbursementStatus | None = ReimbursementStatus.PENDING,
) -> ReimbursementListEnvelope:
    """Employee claims from the caller's team members, pending ones by default."""
    member_ids = await managed_employee_ids(session, auth.user_id)
    if not member_ids:
        return ReimbursementListEnvelope(count=0, reimbursements=[])

    query = select(Reimbursement).where(
        col(Reimbursement.applicant_id).in_(member_ids),
        col(Reimbursement.applicant_role) == Role.EMPLOYEE.value,
    )
    if status_filter is not None:
        query = query.where(col(Reimbursement.status) == status_filter.value)
    return await _list(session, query)


async def manager_review(
    session: AsyncSession,
    auth: AuthContext,
    reimbursement_id: uuid.UUID,
    payload: ManagerReviewPayload,
) -> ReimbursementEnvelope:
    """First-stage decision on an employee claim. Approval forwards it to the admin."""
    claim = await _get_reimbursement_or_404(session, reimbursement_id)
    if claim.status != ReimbursementStatus.PENDING:
        raise InvalidStateError("Can only review pending reimbursements")
    if claim.applicant_role != Role.EMPLOYEE:
        raise InvalidStateError("Managers can only review employee reimbursements")
    if not await is_managed(session, auth.user_id, claim.applicant_id):
        raise AuthorizationError("This employee is not in your team")

    before = model_to_audit_dict(claim)
    await apply_transition(
        session,
        Reimbursement,
        claim.id,
        expected={"status": ReimbursementStatus.PENDING.value, "applicant_role": Role.EMPLOYEE.value},
        values={
            "status": payload.status,
            "manager_note": payload.note,
            "manager_reviewed_by": auth.user_id,
            "manager_reviewed_at": datetime.now(UTC),
        },
        conflict_message="Can only review pending reimbursements",
    )
    forwarded = payload.status == ReimbursementStatus.MANAGER_APPROVED
    await _commit_transition(
        session, auth, claim, before, AuditAction.FORWARD if forwarded else AuditAction.REJECT
    )
    return await _envelope(
        session, claim, "Reimbursement approved (forwarded to admin)" if forwarded else "Reimbursement rejected"
    )


# ---------------------------------------------------------------------------
# Admin stage
# ---------------------------------------------------------------------------


def _admin_stage_status(applicant_role: str) -> ReimbursementStatus:
    """Status a claim must hold to be decided by an admin."""
    if applicant_role == Role.MANAGER:
        return ReimbursementStatus.PENDING
    return ReimbursementStatus.MANAGER_APPROVED


async def list_admin_reimbursements(
    session: AsyncSession,
    status_filter: ReimbursementStatus | None = None,
) -> ReimbursementListEnvelope:
    """Without a filter, the claims awaiting an admin decision on either path."""
    query = select(Reimbursement)
    if status_filter is not None:
        query = query.where(col(Reimbursement.status) == status_filter.value)
    else:
        query = query.where(
            or_(
                and_(
                    col(Reimbursement.applicant_role) == Role.EMPLOYEE.value,
                    col(Reimbursement.status) == ReimbursementStatus.MANAGER_APPROVED.value,
                ),
                and_(
                    col(Reimbursement.applicant_role) == Role.MANAGER.value,
                    col(Reimbursement.status) == ReimbursementStatus.PENDING.value,
                ),
            )
        )
    return await _list(session, query)


async def admin_review(
    session: AsyncSession,
    auth: AuthContext,
    reimbursement_id: uuid.UUID,
    payload: AdminReviewPayload,
) -> ReimbursementEnvelope:
    """Final decision. Employee claims need manager approval first; manager claims go straight here."""
    claim = await _get_reimbursement_or_404(session, reimbursement_id)
    required = _admin_stage_status(claim.applicant_role)
    if claim.status != required:
        if required == ReimbursementStatus.MANAGER_APPROVED:
            raise InvalidStateError("Employee reimbursement must be approved by manager first")
        raise InvalidStateError("Can only review pending manager reimbursements")

    before = model_to_audit_dict(claim)
    await apply_transition(
        session,
        Reimbursement,
        claim.id,
        expected={"status": required.value},
        values={
            "status": payload.status,
            "admin_note": payload.note,
            "admin_reviewed_by": auth.user_id,
            "admin_reviewed_at": datetime.now(UTC),
        },
        conflict_message="Reimbursement has already been reviewed",
    )
    approved = payload.status == ReimbursementStatus.ADMIN_APPROVED
    await _commit_transition(session, auth, claim, before, AuditAction.APPROVE if approved else AuditAction.REJECT)
    return await _envelope(session, claim, "Reimbursement approved" if approved else "Reimbursement rejected")
