"""
Pagination Utility Module

Offset pagination shared by every list endpoint. The metadata block uses the
keys the frontend reads: currentPage, totalPages, totalItems, itemsPerPage,
hasNextPage, hasPrevPage.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from app.core.config import settings


def build_pagination(total: int, page: int, limit: int) -> Dict[str, Any]:
    """
    Create the pagination metadata block.

    Args:
        total: Total count of all matching items
        page: Current page number (1-indexed)
        limit: Items per page

    Returns:
        Pagination dictionary
    """
    total_pages = (total + limit - 1) // limit if total > 0 else 0
    return {
        "currentPage": page,
        "totalPages": total_pages,
        "totalItems": total,
        "itemsPerPage": limit,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
    }


async def paginate(
    db: AsyncSession,
    query: Select,
    page: int = 1,
    limit: int = settings.DEFAULT_PAGE_SIZE,
    count_query: Optional[Select] = None
) -> Dict[str, Any]:
    """
    Apply pagination to a SQLAlchemy query.

    Args:
        db: Database session
        query: Base SQLAlchemy query, already filtered and ordered
        page: Page number (1-indexed)
        limit: Items per page
        count_query: Optional custom count query

    Returns:
        Dictionary with `items` (ORM objects) and `pagination`
    """
    page = max(1, page)
    limit = max(1, min(settings.MAX_PAGE_SIZE, limit))
    offset = (page - 1) * limit

    if count_query is None:
        count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar() or 0

    result = await db.execute(query.offset(offset).limit(limit))
    items: List[Any] = list(result.scalars().all())

    return {
        "items": items,
        "pagination": build_pagination(total, page, limit),
    }
