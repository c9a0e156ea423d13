import logging
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from app.api.deps import PresenceDep
from app.config import get_settings
from app.db import SessionDep

logger = logging.getLogger(__name__)

health_router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Liveness report. ``status`` is degraded when the database is unreachable."""

    status: Literal["ok", "degraded"]
    database: Literal["up", "down"]
    online_users: int
    version: str
    environment: str


@health_router.get("/health", response_model=HealthResponse)
async def health(session: SessionDep, hub: PresenceDep) -> HealthResponse:
    settings = get_settings()
    database: Literal["up", "down"] = "up"

    try:
        await session.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Health check: database connectivity failed")
        database = "down"

    return HealthResponse(
        status="ok" if database == "up" else "degraded",
        database=database,
        online_users=len(hub.online_user_ids()),
        version=settings.app_version,
        environment=settings.environment,
    )
