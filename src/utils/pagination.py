# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pagination helpers shared by list endpoints.

Every list endpoint accepts ``page`` and ``limit`` query parameters and
returns a ``pagination`` object with ``{page, limit, total, pages}``.

Example:
    params = PageParams.normalize(page=0, limit=500)
    # PageParams(page=1, limit=100)
    stmt = stmt.offset(params.offset).limit(params.limit)
    meta = Pagination.build(params, total=42)
"""

import math
from dataclasses import dataclass

from pydantic import BaseModel

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass(frozen=True)
class PageParams:
    """Normalised page/limit pair."""

    page: int = 1
    limit: int = DEFAULT_LIMIT

    @classmethod
    def normalize(
        cls,
        page: int | None = None,
        limit: int | None = None,
        default_limit: int = DEFAULT_LIMIT,
    ) -> "PageParams":
        """Clamp raw query values into a valid window.

        Args:
            page: Requested page, 1-based. Values below 1 become 1.
            limit: Requested page size, clamped to 1..MAX_LIMIT.
            default_limit: Page size used when limit is not given.

        Returns:
            Normalised parameters.
        """
        page = max(1, page or 1)
        if limit is None:
            limit = default_limit
        limit = min(MAX_LIMIT, max(1, limit))
        return cls(page=page, limit=limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class Pagination(BaseModel):
    """Pagination metadata included in list responses."""

    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, params: PageParams, total: int) -> "Pagination":
        return cls(
            page=params.page,
            limit=params.limit,
            total=total,
            pages=math.ceil(total / params.limit) if total else 0,
        )
