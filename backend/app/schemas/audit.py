# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from app.schemas.common import Envelope


class AuditLogEntryResponse(BaseModel):
    id: uuid.UUID
    actor_id: uuid.UUID
    entity_type: str
    entity_id: uuid.UUID
    action: str
    before_json: dict[str, Any] | None
    after_json: dict[str, Any] | None
    created_at: datetime


class AuditLogListEnvelope(Envelope):
    """One page of audit entries, newest first. ``total`` counts every match."""

    total: int
    count: int
    entries: list[AuditLogEntryResponse]
