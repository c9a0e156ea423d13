# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from typing import TYPE_CHECKING

from sqlalchemy import delete, select, update
from sqlmodel import col

from app.exceptions import AuthenticationError, AuthorizationError, ConflictError, NotFoundError, ValidationError
from app.models.allocation import LeaveAllocation
from app.models.enums import AuditAction, AuditEntityType, Role
from app.models.team import Team, TeamMember
from app.models.user import User
from app.schemas.auth import UserResponse
from app.schemas.common import UserSummary
from app.schemas.user import UserEnvelope, UserListEnvelope
from app.security import hash_password, verify_password
from app.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from app.schemas.auth import AuthContext
    from app.schemas.user import ChangePasswordRequest, CreateUserRequest, UpdateProfileRequest

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Directory helpers (shared by every case service)
# ---------------------------------------------------------------------------


def build_user_summary(user: User) -> UserSummary:
    return UserSummary(id=user.id, name=user.name, email=user.email, role=Role(user.role), avatar=user.avatar)


def build_user_response(user: User) -> UserResponse:
    """Map a user model to its profile schema."""
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=Role(user.role),
        avatar=user.avatar,
        designation=user.designation,
        manager_id=user.manager_id,
        created_at=user.created_at,
    )


async def load_user_summaries(
    session: AsyncSession,
    user_ids: Iterable[uuid.UUID | None],
) -> dict[uuid.UUID, UserSummary]:
    """Fetch summaries for a set of user IDs in one query. Unknown IDs are absent."""
    ids = {user_id for user_id in user_ids if user_id is not None}
    if not ids:
        return {}
    result = await session.execute(select(User).where(col(User.id).in_(ids)))
    return {user.id: build_user_summary(user) for user in result.scalars().all()}


async def get_user(session: AsyncSession, user_id: uuid.UUID) -> User | None:
    result = await session.execute(select(User).where(col(User.id) == user_id))
    return result.scalar_one_or_none()


async def get_user_or_404(session: AsyncSession, user_id: uuid.UUID, message: str = "User not found") -> User:
    """Fetch a user by ID. Raises 404 if not found."""
    user = await get_user(session, user_id)
    if user is None:
        raise NotFoundError(message)
    return user


async def get_employee_or_404(session: AsyncSession, employee_id: uuid.UUID) -> User:
    """Fetch a user that must hold the employee role."""
    user = await get_user(session, employee_id)
    if user is None or user.role != Role.EMPLOYEE:
        raise NotFoundError("Employee not found")
    return user


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(col(User.email) == email.strip().lower()))
    return result.scalar_one_or_none()


async def list_users_by_role(session: AsyncSession, role: Role | None = None) -> list[User]:
    query = select(User).order_by(col(User.created_at).desc())
    if role is not None:
        query = query.where(col(User.role) == role.value)
    result = await session.execute(query)
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Account creation
# ---------------------------------------------------------------------------


async def create_user(
    session: AsyncSession,
    *,
    name: str,
    email: str,
    password: str,
    role: Role,
    designation: str = "",
    actor_id: uuid.UUID | None = None,
) -> User:
    """Create an account. Raises 409 on a duplicate email. Does not commit."""
    normalized_email = email.strip().lower()
    if await get_user_by_email(session, normalized_email) is not None:
        raise ConflictError("A user with this email already exists")

    user = User(
        name=name.strip(),
        email=normalized_email,
        password_hash=hash_password(password),
        role=role.value,
        designation=designation,
    )
    session.add(user)
    await session.flush()

    await write_audit_log(
        session,
        actor_id=actor_id or user.id,
        entity_type=AuditEntityType.USER,
        entity_id=user.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(user),
    )
    logger.info("Created %s account %s", role.value, user.id)
    return user


async def admin_create_user(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateUserRequest,
    role: Role,
) -> UserEnvelope:
    """Admin creates a manager or employee account."""
    user = await create_user(
        session,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=role,
        designation=payload.designation,
        actor_id=auth.user_id,
    )
    await session.commit()
    await session.refresh(user)
    return UserEnvelope(
        message=f"{role.value.capitalize()} account created successfully",
        user=build_user_response(user),
    )


async def list_users(session: AsyncSession, role: Role | None = None) -> UserListEnvelope:
    users = await list_users_by_role(session, role)
    return UserListEnvelope(count=len(users), users=[build_user_response(u) for u in users])


async def delete_user(session: AsyncSession, auth: AuthContext, user_id: uuid.UUID) -> None:
    """Delete an account and the relations that cannot outlive it.

    Cases keep their owner/reviewer IDs; memberships, owned teams, the leave
    allocation and direct assignments to a deleted manager are removed.
    """
    user = await get_user_or_404(session, user_id)
    if user.id == auth.user_id:
        raise ValidationError("You cannot delete your own account")

    before = model_to_audit_dict(user)

    await session.execute(delete(TeamMember).where(col(TeamMember.employee_id) == user.id))
    if user.role == Role.MANAGER:
        owned_team_ids = select(col(Team.id)).where(col(Team.manager_id) == user.id)
        await session.execute(delete(TeamMember).where(col(TeamMember.team_id).in_(owned_team_ids)))
        await session.execute(delete(Team).where(col(Team.manager_id) == user.id))
        await session.execute(
            update(User).where(col(User.manager_id) == user.id).values(manager_id=None)
        )
    await session.execute(delete(LeaveAllocation).where(col(LeaveAllocation.employee_id) == user.id))
    await session.delete(user)

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.USER,
        entity_id=user_id,
        action=AuditAction.DELETE,
        before_json=before,
    )
    await session.commit()
    logger.info("Deleted user %s", user_id)


# ---------------------------------------------------------------------------
# Direct manager assignment ("my team" roster)
# ---------------------------------------------------------------------------


async def list_unassigned_employees(session: AsyncSession) -> UserListEnvelope:
    result = await session.execute(
        select(User)
        .where(col(User.role) == Role.EMPLOYEE.value, col(User.manager_id).is_(None))
        .order_by(col(User.created_at).desc())
    )
    users = list(result.scalars().all())
    return UserListEnvelope(count=len(users), users=[build_user_response(u) for u in users])


async def assign_employee(session: AsyncSession, auth: AuthContext, employee_id: uuid.UUID) -> UserEnvelope:
    """Assign an unassigned employee to the calling manager."""
    employee = await get_user_or_404(session, employee_id, "Employee not found")
    if employee.role != Role.EMPLOYEE:
        raise ValidationError("Selected user is not an employee")
    if employee.manager_id is not None:
        raise ConflictError("This employee is already assigned to a manager")

    employee.manager_id = auth.user_id
    await session.commit()
    await session.refresh(employee)
    return UserEnvelope(message="Employee assigned successfully", user=build_user_response(employee))


async def list_my_roster(session: AsyncSession, auth: AuthContext) -> UserListEnvelope:
    result = await session.execute(
        select(User)
        .where(col(User.role) == Role.EMPLOYEE.value, col(User.manager_id) == auth.user_id)
        .order_by(col(User.created_at).desc())
    )
    users = list(result.scalars().all())
    return UserListEnvelope(count=len(users), users=[build_user_response(u) for u in users])


async def unassign_employee(session: AsyncSession, auth: AuthContext, employee_id: uuid.UUID) -> UserEnvelope:
    """Release an employee from the calling manager's roster."""

    employee = await get_user_or_404(session, employee_id, "Employee not found")
    if employee.manager_id != auth.user_id:
        raise AuthorizationError("This employee is not in your team")

    employee.manager_id = None
    await session.commit()
    await session.refresh(employee)
    return UserEnvelope(message="Employee removed from team", user=build_user_response(employee))


# ---------------------------------------------------------------------------
# Self-service
# ---------------------------------------------------------------------------


async def update_profile(session: AsyncSession, auth: AuthContext, payload: UpdateProfileRequest) -> UserEnvelope:
    user = await get_user_or_404(session, auth.user_id)
    if payload.name is not None:
        user.name = payload.name
    if payload.avatar is not None:
        user.avatar = payload.avatar
    if payload.designation is not None:
        user.designation = payload.designation
    await session.commit()
    await session.refresh(user)
    return UserEnvelope(message="Profile updated successfully", user=build_user_response(user))


async def change_password(session: AsyncSession, auth: AuthContext, payload: ChangePasswordRequest) -> str:
    """Change the caller's password and return the confirmation message.

    Accounts created without a password may set one without the current password.
    """

    user = await get_user_or_404(session, auth.user_id)
    if user.password_hash is None:
        user.password_hash = hash_password(payload.new_password)
        await session.commit()
        return "Password set successfully"

    if not payload.current_password or not verify_password(payload.current_password, user.password_hash):
        raise AuthenticationError("Current password is incorrect")

    user.password_hash = hash_password(payload.new_password)
    await session.commit()
    return "Password changed successfully"
