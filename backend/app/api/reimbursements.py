# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from app.api.deps import AdminDep, ManagerDep, StaffDep
from app.db import SessionDep
from app.models.enums import ReimbursementStatus
from app.schemas.reimbursement import (
    AdminReviewPayload,
    ApplyReimbursementPayload,
    ManagerReviewPayload,
    ReimbursementEnvelope,
    ReimbursementListEnvelope,
)
from app.services import reimbursement as reimbursement_service

reimbursements_router = APIRouter(prefix="/reimbursements", tags=["reimbursements"])


@reimbursements_router.post("", response_model=ReimbursementEnvelope, status_code=status.HTTP_201_CREATED)
async def apply_reimbursement(
    payload: ApplyReimbursementPayload,
    session: SessionDep,
    auth: StaffDep,
) -> ReimbursementEnvelope:
    """File an expense claim. Manager claims go straight to the admin stage."""
    return await reimbursement_service.apply_reimbursement(session, auth, payload)


@reimbursements_router.get("/my", response_model=ReimbursementListEnvelope)
async def my_reimbursements(
    session: SessionDep,
    auth: StaffDep,
    status_filter: ReimbursementStatus | None = Query(default=None, alias="status"),
) -> ReimbursementListEnvelope:
    return await reimbursement_service.list_my_reimbursements(session, auth, status_filter)


@reimbursements_router.put("/{reimbursement_id}/withdraw", response_model=ReimbursementEnvelope)
async def withdraw_reimbursement(
    reimbursement_id: uuid.UUID,
    session: SessionDep,
    auth: StaffDep,
) -> ReimbursementEnvelope:
    return await reimbursement_service.withdraw_reimbursement(session, auth, reimbursement_id)


@reimbursements_router.get("/team", response_model=ReimbursementListEnvelope)
async def team_reimbursements(
    session: SessionDep,
    auth: ManagerDep,
    status_filter: ReimbursementStatus = Query(default=ReimbursementStatus.PENDING, alias="status"),
) -> ReimbursementListEnvelope:
    return await reimbursement_service.list_team_reimbursements(session, auth, status_filter)


@reimbursements_router.put("/{reimbursement_id}/manager-review", response_model=ReimbursementEnvelope)
async def manager_review(
    reimbursement_id: uuid.UUID,
    payload: ManagerReviewPayload,
    session: SessionDep,
    auth: ManagerDep,
) -> ReimbursementEnvelope:
    return await reimbursement_service.manager_review(session, auth, reimbursement_id, payload)


@reimbursements_router.get("/admin", response_model=ReimbursementListEnvelope)
async def admin_reimbursements(
    session: SessionDep,
    _auth: AdminDep,
    status_filter: ReimbursementStatus | None = Query(default=None, alias="status"),
) -> ReimbursementListEnvelope:
    """Claims awaiting an admin decision, or all claims with the given status."""
    return await reimbursement_service.list_admin_reimbursements(session, status_filter)


@reimbursements_router.put("/{reimbursement_id}/admin-review", response_model=ReimbursementEnvelope)
async def admin_review(
    reimbursement_id: uuid.UUID,
    payload: AdminReviewPayload,
    session: SessionDep,
    auth: AdminDep,
) -> ReimbursementEnvelope:
    return await reimbursement_service.admin_review(session, auth, reimbursement_id, payload)
