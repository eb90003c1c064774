# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the migration runner."""

import pytest

from src.infrastructure.database.migrations.runner import (
    MIGRATIONS,
    MigrationError,
    _load_upgrade,
    get_pending_migrations,
)


class TestGetPendingMigrations:
    """Tests for get_pending_migrations()."""

    def test_fresh_database_gets_everything(self) -> None:
        assert get_pending_migrations(None) == MIGRATIONS

    def test_up_to_date_database_gets_nothing(self) -> None:
        assert get_pending_migrations(MIGRATIONS[-1]) == []

    def test_unknown_current_version_is_not_touched(self) -> None:
        assert get_pending_migrations("999_from_the_future") == []

    def test_target_revision_is_inclusive(self) -> None:
        assert get_pending_migrations(None, MIGRATIONS[0]) == MIGRATIONS[:1]

    def test_unknown_target_revision(self) -> None:
        assert get_pending_migrations(None, "999_missing") == []


class TestLoadUpgrade:
    """Tests for loading revision modules."""

    def test_known_revisions_have_upgrade(self) -> None:
        for revision in MIGRATIONS:
            assert callable(_load_upgrade(revision))

    def test_missing_revision_raises(self) -> None:
        with pytest.raises(MigrationError, match="Cannot import"):
            _load_upgrade("999_missing")
