"""Limit/offset pagination over SQLModel select statements."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi_pagination.ext.sqlalchemy import paginate as _paginate

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from fastapi_pagination.limit_offset import LimitOffsetPage
    from sqlalchemy.sql import Select
    from sqlmodel.ext.asyncio.session import AsyncSession


async def paginate(
    session: AsyncSession,
    statement: Select[Any],
    *,
    transformer: Callable[[Sequence[Any]], Sequence[Any]] | None = None,
) -> LimitOffsetPage[Any]:
    """Paginate `statement` using the page params of the current request."""
    return await _paginate(session, statement, transformer=transformer)
