# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query

from app.api.deps import AdminDep
from app.db import SessionDep
from app.models.enums import AuditAction, AuditEntityType
from app.schemas.audit import AuditLogListEnvelope
from app.services import audit as audit_service

audit_router = APIRouter(prefix="/audit-log", tags=["audit"])


@audit_router.get("", response_model=AuditLogListEnvelope)
async def query_audit_log(
    session: SessionDep,
    _auth: AdminDep,
    entity_type: AuditEntityType | None = Query(default=None),
    entity_id: uuid.UUID | None = Query(default=None),
    action: AuditAction | None = Query(default=None),
    actor_id: uuid.UUID | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> AuditLogListEnvelope:
    """Query audit entries with optional filters (admin only)."""
    return await audit_service.query_audit_log(
        session,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        actor_id=actor_id,
        offset=offset,
        limit=limit,
    )
