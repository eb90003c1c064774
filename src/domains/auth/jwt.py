# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""JWT token management utilities.

This module provides JWT token creation and validation using python-jose.
Three token kinds exist, each signed with its own secret:

- access: short-lived bearer token carrying role and tenant claims
- refresh: long-lived token backed by a revocable DeviceToken row
- reset: one-hour password reset token bound to the current password hash

Example:
    >>> from src.core.config import get_settings
    >>> jwt_manager = JWTManager(get_settings().jwt)
    >>> tokens = jwt_manager.create_token_pair(user_id="user-123", role="TEACHER")
    >>> claims = jwt_manager.decode_token(tokens.access_token, "access")
"""

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Literal
from uuid import UUID

from jose import ExpiredSignatureError, JWTError as JoseJWTError, jwt
from pydantic import BaseModel, ValidationError

from src.core.config.settings import JWTSettings

logger = logging.getLogger(__name__)

TokenType = Literal["access", "refresh", "reset"]


class TokenPayload(BaseModel):
    """JWT token payload structure.

    Attributes:
        sub: Subject (user ID).
        type: Token type.
        role: User role.
        school_id: School the user is bound to, if any.
        tenant_id: Tenant grouping of the school, if any.
        approval_status: Registration approval state for principals/teachers.
        fingerprint: Password hash fingerprint (reset tokens only).
        exp: Expiration timestamp.
        iat: Issued at timestamp.
        jti: JWT ID for token tracking.
    """

    sub: str
    type: TokenType
    role: str | None = None
    school_id: str | None = None
    tenant_id: str | None = None
    approval_status: str | None = None
    fingerprint: str | None = None
    exp: int
    iat: int
    jti: str


class TokenPair(BaseModel):
    """Access and refresh token pair.

    Attributes:
        access_token: JWT access token string.
        refresh_token: JWT refresh token string.
        token_type: Token type (always "Bearer").
        expires_in: Access token expiration in seconds.
        refresh_expires_in: Refresh token expiration in seconds.
    """

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    refresh_expires_in: int


class JWTError(Exception):
    """Base exception for JWT operations."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid."""

    pass


class JWTManager:
    """JWT token creation and validation manager.

    Attributes:
        _settings: JWT configuration settings.

    Example:
        >>> jwt_manager = JWTManager(settings)
        >>> tokens = jwt_manager.create_token_pair(
        ...     user_id="user-123",
        ...     role="PRINCIPAL",
        ...     school_id="school-456",
        ...     approval_status="PENDING",
        ... )
        >>> claims = jwt_manager.decode_token(tokens.refresh_token, "refresh")
    """

    def __init__(self, settings: JWTSettings) -> None:
        """Initialize the JWT manager.

        Args:
            settings: JWT configuration settings.
        """
        self._settings = settings

    @property
    def refresh_lifetime(self) -> timedelta:
        return timedelta(days=self._settings.refresh_token_expire_days)

    @property
    def access_lifetime_seconds(self) -> int:
        return self._settings.access_token_expire_minutes * 60

    def _secret_for(self, token_type: TokenType) -> str:
        if token_type == "refresh":
            return self._settings.refresh_secret_key.get_secret_value()
        if token_type == "reset":
            return self._settings.reset_secret_key.get_secret_value()
        return self._settings.secret_key.get_secret_value()

    def _encode(self, payload: dict, token_type: TokenType) -> str:
        return jwt.encode(
            payload,
            self._secret_for(token_type),
            algorithm=self._settings.algorithm,
        )

    def create_token_pair(
        self,
        user_id: str | UUID,
        role: str,
        school_id: str | UUID | None = None,
        tenant_id: str | UUID | None = None,
        approval_status: str | None = None,
    ) -> TokenPair:
        """Create an access and refresh token pair.

        Args:
            user_id: User identifier.
            role: User role.
            school_id: School the user is bound to.
            tenant_id: Tenant grouping of the school.
            approval_status: Approval state for principals/teachers.

        Returns:
            TokenPair with access and refresh tokens.
        """
        now = datetime.now(timezone.utc)
        refresh_exp = now + self.refresh_lifetime

        access_token = self.create_access_token(
            user_id=user_id,
            role=role,
            school_id=school_id,
            tenant_id=tenant_id,
            approval_status=approval_status,
        )

        refresh_payload = {
            "sub": str(user_id),
            "type": "refresh",
            "role": role,
            "exp": int(refresh_exp.timestamp()),
            "iat": int(now.timestamp()),
            "jti": secrets.token_urlsafe(16),
        }

        return TokenPair(
            access_token=access_token,
            refresh_token=self._encode(refresh_payload, "refresh"),
            token_type="Bearer",
            expires_in=self._settings.access_token_expire_minutes * 60,
            refresh_expires_in=int(self.refresh_lifetime.total_seconds()),
        )

    def create_access_token(
        self,
        user_id: str | UUID,
        role: str,
        school_id: str | UUID | None = None,
        tenant_id: str | UUID | None = None,
        approval_status: str | None = None,
    ) -> str:
        """Create an access token.

        Args:
            user_id: User identifier.
            role: User role.
            school_id: School the user is bound to.
            tenant_id: Tenant grouping of the school.
            approval_status: Approval state for principals/teachers.

        Returns:
            JWT access token string.
        """
        now = datetime.now(timezone.utc)
        exp = now + timedelta(minutes=self._settings.access_token_expire_minutes)

        payload = {
            "sub": str(user_id),
            "type": "access",
            "role": role,
            "school_id": str(school_id) if school_id else None,
            "tenant_id": str(tenant_id) if tenant_id else None,
            "approval_status": approval_status,
            "exp": int(exp.timestamp()),
            "iat": int(now.timestamp()),
            "jti": secrets.token_urlsafe(16),
        }

        return self._encode(payload, "access")

    def create_reset_token(self, user_id: str | UUID, password_hash: str) -> str:
        """Create a password reset token.

        The token embeds a fingerprint of the current password hash, so it
        stops validating as soon as the password changes.

        Args:
            user_id: User identifier.
            password_hash: The user's current bcrypt hash.

        Returns:
            JWT reset token string.
        """
        now = datetime.now(timezone.utc)
        exp = now + timedelta(minutes=self._settings.reset_token_expire_minutes)

        payload = {
            "sub": str(user_id),
            "type": "reset",
            "fingerprint": self.password_fingerprint(password_hash),
            "exp": int(exp.timestamp()),
            "iat": int(now.timestamp()),
            "jti": secrets.token_urlsafe(16),
        }

        return self._encode(payload, "reset")

    def decode_token(
        self,
        token: str,
        expected_type: TokenType = "access",
    ) -> TokenPayload:
        """Decode and validate a JWT token.

        Args:
            token: JWT token string.
            expected_type: Expected token type; selects the verification key.

        Returns:
            TokenPayload with decoded claims.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid or wrong type.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_for(expected_type),
                algorithms=[self._settings.algorithm],
            )
        except ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except JoseJWTError as e:
            logger.warning("Token decode failed: %s", str(e))
            raise InvalidTokenError(f"Invalid token: {str(e)}")

        if payload.get("type") != expected_type:
            raise InvalidTokenError(f"Expected {expected_type} token, got {payload.get('type')}")

        try:
            return TokenPayload.model_validate(payload)
        except ValidationError as e:
            raise InvalidTokenError(f"Invalid token claims: {e.error_count()} errors")

    def verify_token(self, token: str, expected_type: TokenType = "access") -> bool:
        """Verify if a token is valid.

        Returns:
            True if token is valid, False otherwise.
        """
        try:
            self.decode_token(token, expected_type)
            return True
        except JWTError:
            return False

    @staticmethod
    def hash_token(token: str) -> str:
        """Create a SHA-256 hash of a token.

        Used for storing refresh token hashes in the database instead of
        the token itself.

        Args:
            token: Token string to hash.

        Returns:
            SHA-256 hash of the token as hex string.
        """
        return hashlib.sha256(token.encode()).hexdigest()

    @staticmethod
    def password_fingerprint(password_hash: str) -> str:
        """Short digest of a password hash used to bind reset tokens."""
        return hashlib.sha256(password_hash.encode()).hexdigest()[:16]
