# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from app.models.enums import ComplaintCategory, ComplaintStatus
from app.schemas.common import Envelope, Payload, UserSummary


class RaiseComplaintPayload(Payload):
    subject: str = Field(min_length=3, max_length=100)
    description: str = Field(min_length=1, max_length=1000)
    category: ComplaintCategory


class ComplaintReviewPayload(Payload):
    status: Literal["accepted", "rejected"]
    note: str = Field(default="", max_length=500)


class ComplaintResponse(BaseModel):
    id: uuid.UUID
    employee_id: uuid.UUID
    employee: UserSummary | None
    subject: str
    description: str
    category: ComplaintCategory
    status: ComplaintStatus
    manager_note: str
    reviewed_by: uuid.UUID | None
    reviewer: UserSummary | None
    reviewed_at: datetime | None
    created_at: datetime


class ComplaintEnvelope(Envelope):
    complaint: ComplaintResponse


class ComplaintListEnvelope(Envelope):
    count: int
    complaints: list[ComplaintResponse]
