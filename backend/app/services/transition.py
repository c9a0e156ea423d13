# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from sqlalchemy import update
from sqlmodel import col

from app.exceptions import InvalidStateError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlmodel import SQLModel


async def apply_transition(
    session: AsyncSession,
    model: type[SQLModel],
    case_id: uuid.UUID,
    *,
    expected: dict[str, Any],
    values: dict[str, Any],
    conflict_message: str,
) -> None:
    """Move a case to a new state with a single guarded UPDATE.

    The row is only written if every column in ``expected`` still holds the
    given value. When another writer got there first the UPDATE matches
    nothing and ``InvalidStateError`` is raised, leaving the transaction
    free of side effects. Does not commit.
    """
    guards = [col(getattr(model, name)) == value for name, value in expected.items()]
    result = await session.execute(
        update(model)
        .where(col(model.id) == case_id, *guards)  # type: ignore[attr-defined]
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:  # type: ignore[attr-defined]
        raise InvalidStateError(conflict_message)
