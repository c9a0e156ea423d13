# ruff: noqa: B008
from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.exceptions import AuthenticationError, AuthorizationError
from app.models.enums import Role
from app.schemas.auth import AuthContext
from app.security import decode_access_token
from app.services.cache import OverviewCaches, get_overview_caches
from app.services.presence import PresenceHub, get_presence_hub

_bearer = HTTPBearer(auto_error=False)


async def get_auth_context(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> AuthContext:
    """Resolve the caller from the ``Authorization: Bearer`` session token."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authorized, no token")
    return decode_access_token(credentials.credentials)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


def require_roles(*roles: Role) -> Callable[[AuthContext], Awaitable[AuthContext]]:
    """Build a dependency that admits only callers holding one of ``roles``."""
    allowed = frozenset(roles)

    async def _check(auth: AuthDep) -> AuthContext:
        if auth.role not in allowed:
            raise AuthorizationError(f"Role '{auth.role}' is not authorized to access this route")
        return auth

    return _check


AdminDep = Annotated[AuthContext, Depends(require_roles(Role.ADMIN))]
ManagerDep = Annotated[AuthContext, Depends(require_roles(Role.MANAGER))]
EmployeeDep = Annotated[AuthContext, Depends(require_roles(Role.EMPLOYEE))]
StaffDep = Annotated[AuthContext, Depends(require_roles(Role.EMPLOYEE, Role.MANAGER))]
AdminOrManagerDep = Annotated[AuthContext, Depends(require_roles(Role.ADMIN, Role.MANAGER))]

CachesDep = Annotated[OverviewCaches, Depends(get_overview_caches)]
PresenceDep = Annotated[PresenceHub, Depends(get_presence_hub)]
