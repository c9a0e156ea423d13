# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel

from app.schemas.common import Envelope, Payload, UserSummary


class SetAllocationPayload(Payload):
    """Admin upsert of an employee's leave quota. Bounds are checked by the service."""

    employee_id: uuid.UUID
    total_leaves: int


class UpdateAllocationPayload(Payload):
    total_leaves: int


class AllocationResponse(BaseModel):
    id: uuid.UUID
    employee_id: uuid.UUID
    employee: UserSummary | None
    total_leaves: int
    leaves_taken: int
    leaves_remaining: int
    created_at: datetime
    updated_at: datetime


class AllocationEnvelope(Envelope):
    allocation: AllocationResponse


class AllocationListEnvelope(Envelope):
    allocations: list[AllocationResponse]
    unallocated_employees: list[UserSummary]
