from __future__ import annotations

from fastapi import APIRouter, status

from app.api.deps import AuthDep
from app.db import SessionDep
from app.schemas.auth import AuthEnvelope, LoginRequest, MeEnvelope, RegisterRequest
from app.services import auth as auth_service

auth_router = APIRouter(prefix="/auth", tags=["auth"])


@auth_router.post("/register", response_model=AuthEnvelope, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, session: SessionDep) -> AuthEnvelope:
    """Create an account with email and password."""
    return await auth_service.register(session, payload)


@auth_router.post("/login", response_model=AuthEnvelope)
async def login(payload: LoginRequest, session: SessionDep) -> AuthEnvelope:
    return await auth_service.login(session, payload)


@auth_router.get("/me", response_model=MeEnvelope)
async def me(session: SessionDep, auth: AuthDep) -> MeEnvelope:
    """Return the profile of the token holder."""
    return await auth_service.get_me(session, auth)
