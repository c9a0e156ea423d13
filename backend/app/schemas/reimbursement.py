# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from app.models.enums import ReimbursementCategory, ReimbursementStatus, Role
from app.schemas.common import Envelope, Payload, UserSummary


class ApplyReimbursementPayload(Payload):
    """Request body for a new claim. The minimum amount is checked by the service."""

    title: str = Field(min_length=3, max_length=100)
    description: str = Field(min_length=1, max_length=1000)
    amount: float = Field(allow_inf_nan=False)
    category: ReimbursementCategory
    receipt: str = Field(default="", max_length=1024)


class ManagerReviewPayload(Payload):
    status: Literal["manager_approved", "rejected"]
    note: str = Field(default="", max_length=300)


class AdminReviewPayload(Payload):
    status: Literal["admin_approved", "rejected"]
    note: str = Field(default="", max_length=300)


class ReimbursementResponse(BaseModel):
    id: uuid.UUID
    applicant_id: uuid.UUID
    applicant: UserSummary | None
    applicant_role: Role
    title: str
    description: str
    amount: float
    category: ReimbursementCategory
    receipt: str
    status: ReimbursementStatus
    manager_reviewed_by: uuid.UUID | None
    manager_reviewer: UserSummary | None
    manager_reviewed_at: datetime | None
    manager_note: str
    admin_reviewed_by: uuid.UUID | None
    admin_reviewer: UserSummary | None
    admin_reviewed_at: datetime | None
    admin_note: str
    created_at: datetime


class ReimbursementEnvelope(Envelope):
    reimbursement: ReimbursementResponse


class ReimbursementListEnvelope(Envelope):
    count: int
    reimbursements: list[ReimbursementResponse]
