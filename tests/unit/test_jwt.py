# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for JWT token utilities.

Tests the JWTManager class and token operations.
"""

import time
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from pydantic import SecretStr

from src.domains.auth.jwt import (
    InvalidTokenError,
    JWTManager,
    TokenExpiredError,
    TokenPair,
)


@pytest.fixture
def jwt_settings() -> MagicMock:
    """Create mock JWT settings."""
    settings = MagicMock()
    settings.secret_key = SecretStr("test-secret-key-for-jwt-testing")
    settings.refresh_secret_key = SecretStr("test-refresh-secret-key")
    settings.reset_secret_key = SecretStr("test-reset-secret-key")
    settings.algorithm = "HS256"
    settings.access_token_expire_minutes = 15
    settings.refresh_token_expire_days = 7
    settings.reset_token_expire_minutes = 60
    return settings


@pytest.fixture
def jwt_manager(jwt_settings: MagicMock) -> JWTManager:
    """Create JWT manager with test settings."""
    return JWTManager(jwt_settings)


class TestJWTManager:
    """Tests for JWTManager class."""

    def test_create_token_pair_returns_valid_tokens(self, jwt_manager: JWTManager) -> None:
        result = jwt_manager.create_token_pair(
            user_id=str(uuid4()),
            role="TEACHER",
            school_id=str(uuid4()),
            approval_status="PENDING",
        )

        assert isinstance(result, TokenPair)
        assert result.access_token
        assert result.refresh_token
        assert result.token_type == "Bearer"
        assert result.expires_in == 15 * 60
        assert result.refresh_expires_in == 7 * 24 * 60 * 60

    def test_access_token_carries_tenant_claims(self, jwt_manager: JWTManager) -> None:
        user_id = str(uuid4())
        school_id = str(uuid4())
        tenant_id = str(uuid4())

        token = jwt_manager.create_access_token(
            user_id=user_id,
            role="PRINCIPAL",
            school_id=school_id,
            tenant_id=tenant_id,
            approval_status="PENDING",
        )
        payload = jwt_manager.decode_token(token, "access")

        assert payload.sub == user_id
        assert payload.type == "access"
        assert payload.role == "PRINCIPAL"
        assert payload.school_id == school_id
        assert payload.tenant_id == tenant_id
        assert payload.approval_status == "PENDING"
        assert payload.jti

    def test_decode_refresh_token(self, jwt_manager: JWTManager) -> None:
        user_id = str(uuid4())
        tokens = jwt_manager.create_token_pair(user_id=user_id, role="PARENT")

        payload = jwt_manager.decode_token(tokens.refresh_token, "refresh")

        assert payload.sub == user_id
        assert payload.type == "refresh"

    def test_access_token_rejected_as_refresh(self, jwt_manager: JWTManager) -> None:
        """Each token kind is signed with its own secret."""
        token = jwt_manager.create_access_token(user_id=str(uuid4()), role="PARENT")

        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token(token, "refresh")

    def test_refresh_token_rejected_as_access(self, jwt_manager: JWTManager) -> None:
        tokens = jwt_manager.create_token_pair(user_id=str(uuid4()), role="PARENT")

        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token(tokens.refresh_token, "access")

    def test_tokens_are_unique(self, jwt_manager: JWTManager) -> None:
        """Tokens issued in the same second differ by jti."""
        user_id = str(uuid4())

        first = jwt_manager.create_token_pair(user_id=user_id, role="PARENT")
        second = jwt_manager.create_token_pair(user_id=user_id, role="PARENT")

        assert first.refresh_token != second.refresh_token

    def test_expired_token_raises(self, jwt_settings: MagicMock) -> None:
        jwt_settings.access_token_expire_minutes = -1
        manager = JWTManager(jwt_settings)
        token = manager.create_access_token(user_id=str(uuid4()), role="PARENT")

        with pytest.raises(TokenExpiredError):
            manager.decode_token(token, "access")

    def test_invalid_token_raises(self, jwt_manager: JWTManager) -> None:
        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token("not.a.token", "access")

    def test_verify_token(self, jwt_manager: JWTManager) -> None:
        token = jwt_manager.create_access_token(user_id=str(uuid4()), role="PARENT")

        assert jwt_manager.verify_token(token) is True
        assert jwt_manager.verify_token("garbage") is False

    def test_token_from_other_secret_rejected(self, jwt_manager: JWTManager) -> None:
        other_settings = MagicMock()
        other_settings.secret_key = SecretStr("another-secret")
        other_settings.algorithm = "HS256"
        other_settings.access_token_expire_minutes = 15
        token = JWTManager(other_settings).create_access_token(user_id="u", role="PARENT")

        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token(token, "access")


class TestResetTokens:
    """Tests for password reset tokens."""

    def test_reset_token_carries_password_fingerprint(self, jwt_manager: JWTManager) -> None:
        user_id = str(uuid4())
        password_hash = "$2b$04$abcdefghijklmnopqrstuuO1yS0cZkqJ3h0bWqPq3B1d2e3f4g5h6"

        token = jwt_manager.create_reset_token(user_id, password_hash)
        payload = jwt_manager.decode_token(token, "reset")

        assert payload.sub == user_id
        assert payload.fingerprint == JWTManager.password_fingerprint(password_hash)

    def test_fingerprint_changes_with_password(self) -> None:
        assert JWTManager.password_fingerprint("hash-a") != JWTManager.password_fingerprint("hash-b")
        assert len(JWTManager.password_fingerprint("hash-a")) == 16

    def test_reset_token_not_accepted_as_access(self, jwt_manager: JWTManager) -> None:
        token = jwt_manager.create_reset_token(str(uuid4()), "hash")

        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token(token, "access")


class TestHashToken:
    """Tests for refresh token hashing."""

    def test_hash_is_stable_sha256_hex(self) -> None:
        first = JWTManager.hash_token("token-value")

        assert first == JWTManager.hash_token("token-value")
        assert len(first) == 64
        assert first != JWTManager.hash_token("other-token")

    def test_iat_is_current(self, jwt_manager: JWTManager) -> None:
        token = jwt_manager.create_access_token(user_id=str(uuid4()), role="PARENT")
        payload = jwt_manager.decode_token(token)

        assert abs(payload.iat - int(time.time())) <= 5
