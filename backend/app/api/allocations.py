# ruff: noqa: TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter

from app.api.deps import AdminDep
from app.db import SessionDep
from app.schemas.allocation import (
    AllocationEnvelope,
    AllocationListEnvelope,
    SetAllocationPayload,
    UpdateAllocationPayload,
)
from app.services import allocation as allocation_service

allocations_router = APIRouter(prefix="/leave-allocations", tags=["leave-allocations"])


@allocations_router.post("", response_model=AllocationEnvelope)
async def set_allocation(payload: SetAllocationPayload, session: SessionDep, auth: AdminDep) -> AllocationEnvelope:
    """Create or replace an employee's leave quota."""
    return await allocation_service.set_allocation(session, auth, payload)


@allocations_router.get("", response_model=AllocationListEnvelope)
async def list_allocations(session: SessionDep, _auth: AdminDep) -> AllocationListEnvelope:
    return await allocation_service.list_allocations(session)


@allocations_router.put("/{allocation_id}", response_model=AllocationEnvelope)
async def update_allocation(
    allocation_id: uuid.UUID,
    payload: UpdateAllocationPayload,
    session: SessionDep,
    auth: AdminDep,
) -> AllocationEnvelope:
    return await allocation_service.update_allocation(session, auth, allocation_id, payload)
