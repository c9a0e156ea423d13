# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from app.api.deps import EmployeeDep, ManagerDep
from app.db import SessionDep
from app.models.enums import ComplaintStatus
from app.schemas.complaint import (
    ComplaintEnvelope,
    ComplaintListEnvelope,
    ComplaintReviewPayload,
    RaiseComplaintPayload,
)
from app.services import complaint as complaint_service

complaints_router = APIRouter(prefix="/complaints", tags=["complaints"])


@complaints_router.post("", response_model=ComplaintEnvelope, status_code=status.HTTP_201_CREATED)
async def raise_complaint(
    payload: RaiseComplaintPayload,
    session: SessionDep,
    auth: EmployeeDep,
) -> ComplaintEnvelope:
    return await complaint_service.raise_complaint(session, auth, payload)


@complaints_router.get("/my", response_model=ComplaintListEnvelope)
async def my_complaints(session: SessionDep, auth: EmployeeDep) -> ComplaintListEnvelope:
    return await complaint_service.list_my_complaints(session, auth)


@complaints_router.put("/{complaint_id}/withdraw", response_model=ComplaintEnvelope)
async def withdraw_complaint(complaint_id: uuid.UUID, session: SessionDep, auth: EmployeeDep) -> ComplaintEnvelope:
    return await complaint_service.withdraw_complaint(session, auth, complaint_id)


@complaints_router.get("/team", response_model=ComplaintListEnvelope)
async def team_complaints(
    session: SessionDep,
    auth: ManagerDep,
    status_filter: ComplaintStatus | None = Query(default=None, alias="status"),
) -> ComplaintListEnvelope:
    """Complaints raised by members of the caller's teams."""
    return await complaint_service.list_team_complaints(session, auth, status_filter)


@complaints_router.put("/{complaint_id}/review", response_model=ComplaintEnvelope)
async def review_complaint(
    complaint_id: uuid.UUID,
    payload: ComplaintReviewPayload,
    session: SessionDep,
    auth: ManagerDep,
) -> ComplaintEnvelope:
    return await complaint_service.review_complaint(session, auth, complaint_id, payload)
