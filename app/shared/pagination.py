"""Cursor pagination utilities."""

from typing import Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, Field
from sqlalchemy import and_, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from app.exceptions.base import ValidationError

T = TypeVar("T")


class CursorParams(BaseModel):
    """Cursor pagination parameters."""

    limit: int = Field(default=10, ge=1, le=100, description="Page size")
    cursor: UUID | None = Field(default=None, description="ID of the last item of the previous page")


class CursorPage(BaseModel, Generic[T]):
    """Generic cursor-paginated response."""

    items: list[T]
    next_cursor: UUID | None = None
    has_more: bool = False


async def paginate_by_cursor(
    db: AsyncSession,
    query: Select,
    params: CursorParams,
    sort_column,
    id_column,
) -> CursorPage:
    """
    Keyset-paginate a SQLAlchemy query in descending ``(sort_column, id_column)`` order.

    Args:
        db: Database session
        query: SQLAlchemy select query returning ORM entities
        params: Cursor parameters
        sort_column: Primary ordering column (newest first)
        id_column: Unique tie-breaker column, also used as the cursor value

    Returns:
        CursorPage with the page items, the cursor for the next page and
        whether more items exist

    Raises:
        ValidationError: If the cursor does not reference a row the query itself
            can return. Rows hidden by the query's filters are rejected the same
            way as ids that do not exist.
    """
    if params.cursor is not None:
        anchor_query = query.with_only_columns(sort_column).where(id_column == params.cursor)
        anchor_result = await db.execute(anchor_query)
        anchor = anchor_result.scalar_one_or_none()
        if anchor is None:
            raise ValidationError("Invalid pagination cursor", details={"cursor": str(params.cursor)})

        query = query.where(
            or_(sort_column < anchor, and_(sort_column == anchor, id_column < params.cursor))
        )

    # Fetch one extra row to learn whether another page exists
    paginated_query = query.order_by(sort_column.desc(), id_column.desc()).limit(params.limit + 1)
    result = await db.execute(paginated_query)
    items = list(result.scalars().all())

    has_more = len(items) > params.limit
    items = items[: params.limit]

    return CursorPage(items=items, next_cursor=items[-1].id if has_more else None, has_more=has_more)
