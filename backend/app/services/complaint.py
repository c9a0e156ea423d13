# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from app.exceptions import AuthorizationError, InvalidStateError, NotFoundError
from app.models.complaint import Complaint
from app.models.enums import AuditAction, AuditEntityType, ComplaintCategory, ComplaintStatus
from app.schemas.complaint import ComplaintEnvelope, ComplaintListEnvelope, ComplaintResponse
from app.services.audit import model_to_audit_dict, write_audit_log
from app.services.team import is_managed, managed_employee_ids
from app.services.transition import apply_transition
from app.services.user import load_user_summaries

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from app.schemas.auth import AuthContext
    from app.schemas.complaint import ComplaintReviewPayload, RaiseComplaintPayload

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


async def _build_complaint_responses(
    session: AsyncSession,
    complaints: list[Complaint],
) -> list[ComplaintResponse]:
    users = await load_user_summaries(
        session, [uid for c in complaints for uid in (c.employee_id, c.reviewed_by)]
    )
    return [
        ComplaintResponse(
            id=c.id,
            employee_id=c.employee_id,
            employee=users.get(c.employee_id),
            subject=c.subject,
            description=c.description,
            category=ComplaintCategory(c.category),
            status=ComplaintStatus(c.status),
            manager_note=c.manager_note,
            reviewed_by=c.reviewed_by,
            reviewer=users.get(c.reviewed_by) if c.reviewed_by else None,
            reviewed_at=c.reviewed_at,
            created_at=c.created_at,
        )
        for c in complaints
    ]


async def _complaint_envelope(session: AsyncSession, complaint: Complaint, message: str) -> ComplaintEnvelope:
    (response,) = await _build_complaint_responses(session, [complaint])
    return ComplaintEnvelope(message=message, complaint=response)


async def _get_complaint_or_404(session: AsyncSession, complaint_id: uuid.UUID) -> Complaint:
    result = await session.execute(select(Complaint).where(col(Complaint.id) == complaint_id))
    complaint = result.scalar_one_or_none()
    if complaint is None:
        raise NotFoundError("Complaint not found")
    return complaint


async def _commit_transition(
    session: AsyncSession,
    auth: AuthContext,
    complaint: Complaint,
    before: dict,
    action: AuditAction,
) -> None:
    await session.refresh(complaint)
    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.COMPLAINT,
        entity_id=complaint.id,
        action=action,
        before_json=before,
        after_json=model_to_audit_dict(complaint),
    )
    await session.commit()
    await session.refresh(complaint)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def raise_complaint(
    session: AsyncSession,
    auth: AuthContext,
    payload: RaiseComplaintPayload,
) -> ComplaintEnvelope:
    complaint = Complaint(
        employee_id=auth.user_id,
        subject=payload.subject,
        description=payload.description,
        category=payload.category.value,
    )
    session.add(complaint)
    await session.flush()
    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.COMPLAINT,
        entity_id=complaint.id,
        action=AuditAction.SUBMIT,
        after_json=model_to_audit_dict(complaint),
    )
    await session.commit()
    await session.refresh(complaint)
    return await _complaint_envelope(session, complaint, "Complaint raised successfully")


async def list_my_complaints(session: AsyncSession, auth: AuthContext) -> ComplaintListEnvelope:
    result = await session.execute(
        select(Complaint)
        .where(col(Complaint.employee_id) == auth.user_id)
        .order_by(col(Complaint.created_at).desc())
    )
    items = await _build_complaint_responses(session, list(result.scalars().all()))
    return ComplaintListEnvelope(count=len(items), complaints=items)


async def withdraw_complaint(
    session: AsyncSession,
    auth: AuthContext,
    complaint_id: uuid.UUID,
) -> ComplaintEnvelope:
    complaint = await _get_complaint_or_404(session, complaint_id)
    if complaint.employee_id != auth.user_id:
        raise AuthorizationError("You can only withdraw your own complaints")
    if complaint.status != ComplaintStatus.PENDING:
        raise InvalidStateError("Only pending complaints can be withdrawn")

    before = model_to_audit_dict(complaint)
    await apply_transition(
        session,
        Complaint,
        complaint.id,
        expected={"status": ComplaintStatus.PENDING.value},
        values={"status": ComplaintStatus.WITHDRAWN.value},
        conflict_message="Only pending complaints can be withdrawn",
    )
    await _commit_transition(session, auth, complaint, before, AuditAction.WITHDRAW)
    return await _complaint_envelope(session, complaint, "Complaint withdrawn successfully")


async def list_team_complaints(
    session: AsyncSession,
    auth: AuthContext,
    status_filter: ComplaintStatus | None = None,
) -> ComplaintListEnvelope:
    member_ids = await managed_employee_ids(session, auth.user_id)
    if not member_ids:
        return ComplaintListEnvelope(count=0, complaints=[])

    query = select(Complaint).where(col(Complaint.employee_id).in_(member_ids))
    if status_filter is not None:
        query = query.where(col(Complaint.status) == status_filter.value)
    result = await session.execute(query.order_by(col(Complaint.created_at).desc()))
    items = await _build_complaint_responses(session, list(result.scalars().all()))
    return ComplaintListEnvelope(count=len(items), complaints=items)


async def review_complaint(
    session: AsyncSession,
    auth: AuthContext,
    complaint_id: uuid.UUID,
    payload: ComplaintReviewPayload,
) -> ComplaintEnvelope:
    """Accept or reject a team member's pending complaint."""
    complaint = await _get_complaint_or_404(session, complaint_id)
    if complaint.status != ComplaintStatus.PENDING:
        raise InvalidStateError(f"Complaint has already been {complaint.status}")
    if not await is_managed(session, auth.user_id, complaint.employee_id):
        raise AuthorizationError("This employee is not in your team")

    before = model_to_audit_dict(complaint)
    await apply_transition(
        session,
        Complaint,
        complaint.id,
        expected={"status": ComplaintStatus.PENDING.value},
        values={
            "status": payload.status,
            "manager_note": payload.note,
            "reviewed_by": auth.user_id,
            "reviewed_at": datetime.now(UTC),
        },
        conflict_message="Complaint has already been reviewed",
    )
    action = AuditAction.ACCEPT if payload.status == ComplaintStatus.ACCEPTED else AuditAction.REJECT
    await _commit_transition(session, auth, complaint, before, action)
    logger.info("Complaint %s %s by %s", complaint.id, payload.status, auth.user_id)
    return await _complaint_envelope(session, complaint, f"Complaint {payload.status} successfully")
