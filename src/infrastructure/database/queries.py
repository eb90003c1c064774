# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Small query helpers shared by the domain services."""

from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.utils.pagination import PageParams


async def count_rows(db: AsyncSession, stmt: Select) -> int:
    """Count the rows a select would return."""
    result = await db.execute(select(func.count()).select_from(stmt.order_by(None).subquery()))
    return result.scalar() or 0


async def fetch_page(
    db: AsyncSession,
    stmt: Select,
    params: PageParams,
    *order_by: Any,
) -> tuple[list[Any], int]:
    """Run a select for one page and the unpaginated total.

    Args:
        db: Database session.
        stmt: Filtered select of a single entity.
        params: Page window.
        *order_by: Ordering applied before the window.

    Returns:
        Tuple of (rows on the page, total matching rows).
    """
    total = await count_rows(db, stmt)
    result = await db.execute(
        stmt.order_by(*order_by).offset(params.offset).limit(params.limit)
    )
    return list(result.scalars().all()), total
