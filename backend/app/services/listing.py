"""
Query helpers shared by the list endpoints.

Lists are offset-paginated; every row comes back with the display names of
the users who created and last updated it.
"""

from typing import Any, List, Optional, Sequence, Tuple

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from backend.app.models.user import User

Creator = aliased(User, name="creator")
Updater = aliased(User, name="updater")


def full_name(first_name: Optional[str], last_name: Optional[str]) -> Optional[str]:
    if first_name is None and last_name is None:
        return None
    return f"{first_name or ''} {last_name or ''}".strip()


def select_with_authors(model, *extra_columns) -> Select:
    """SELECT model plus creator/updater names (outer joins on users, twice)."""
    return (
        select(
            model,
            Creator.first_name,
            Creator.last_name,
            Updater.first_name,
            Updater.last_name,
            *extra_columns,
        )
        .outerjoin(Creator, Creator.id == model.created_by)
        .outerjoin(Updater, Updater.id == model.updated_by)
    )


def search_condition(search: Optional[str], *columns):
    """Case-insensitive substring match over any of the given columns."""
    if not search:
        return None
    pattern = f"%{search.strip()}%"
    return or_(*[column.ilike(pattern) for column in columns])


def ordering(model, sort_by: str, sort_order: str):
    column = getattr(model, sort_by)
    return column.asc() if sort_order == "asc" else column.desc()


def _unpack(row) -> Tuple[Any, ...]:
    entity, c_first, c_last, u_first, u_last, *extra = row
    return (entity, full_name(c_first, c_last), full_name(u_first, u_last), *extra)


async def fetch_page(
    db: AsyncSession,
    query: Select,
    count_query: Select,
    page: int,
    limit: int,
) -> Tuple[List[Tuple[Any, ...]], int]:
    """
    Run the count and the page query under the same filter.

    Args:
        db: Database session
        query: Output of select_with_authors with filters and ordering applied
        count_query: COUNT(*) query with the same filters
        page: 1-based page number
        limit: Page size

    Returns:
        (rows, total_items); each row is
        ``(entity, created_by_name, updated_by_name, *extra_columns)``
    """
    total = (await db.execute(count_query)).scalar_one()
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))
    return [_unpack(row) for row in result.all()], total


async def fetch_with_authors(db: AsyncSession, model, entity_id) -> Optional[Tuple[Any, ...]]:
    """Load one row with author names, or None."""
    result = await db.execute(select_with_authors(model).where(model.id == entity_id))
    row = result.first()
    return _unpack(row) if row is not None else None


def count_query(model, conditions: Sequence) -> Select:
    return select(func.count()).select_from(model).where(*conditions)


def to_response(schema, obj, created_by_name=None, updated_by_name=None, **extra):
    """Validate an ORM row into its response schema and attach author names."""
    return schema.model_validate(obj).model_copy(
        update={"created_by_name": created_by_name, "updated_by_name": updated_by_name, **extra}
    )
