# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for pagination helpers."""

import pytest

from src.utils.pagination import DEFAULT_LIMIT, MAX_LIMIT, PageParams, Pagination


class TestPageParams:
    """Tests for PageParams."""

    def test_defaults(self) -> None:
        params = PageParams.normalize()

        assert params.page == 1
        assert params.limit == DEFAULT_LIMIT
        assert params.offset == 0

    @pytest.mark.parametrize(
        ("page", "limit", "expected"),
        [
            (0, 10, (1, 10)),
            (-3, 10, (1, 10)),
            (2, 0, (2, 1)),
            (2, 500, (2, MAX_LIMIT)),
        ],
    )
    def test_clamping(self, page: int, limit: int, expected: tuple[int, int]) -> None:
        params = PageParams.normalize(page, limit)

        assert (params.page, params.limit) == expected

    def test_custom_default_limit(self) -> None:
        assert PageParams.normalize(default_limit=20).limit == 20

    def test_offset(self) -> None:
        assert PageParams(page=3, limit=25).offset == 50


class TestPagination:
    """Tests for Pagination.build()."""

    def test_pages_rounded_up(self) -> None:
        pagination = Pagination.build(PageParams(page=1, limit=10), 21)

        assert pagination.model_dump() == {"page": 1, "limit": 10, "total": 21, "pages": 3}

    def test_empty_result_has_no_pages(self) -> None:
        assert Pagination.build(PageParams(), 0).pages == 0
