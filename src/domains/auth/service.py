# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication service for registration and session management.

This module provides the main AuthService that orchestrates:
- Self-registration with role profiles and the approval workflow
- Password login with school verification and approval checks
- Refresh token rotation backed by revocable DeviceToken rows
- Logout (soft revoke of a device token)
- Password reset through single-use signed tokens

Example:
    >>> auth_service = AuthService(db_session, jwt_manager, password_hasher)
    >>> result = await auth_service.login("teacher@school.org", "secret123")
    >>> access_token = await auth_service.refresh(result.tokens.refresh_token)
"""

import logging
from dataclasses import dataclass
from typing import NamedTuple

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import (
    AuthenticationFailedError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
)
from src.domains.auth.jwt import JWTError, JWTManager, TokenPair
from src.domains.auth.password import PasswordHasher
from src.domains.notification.service import NotificationService
from src.infrastructure.database.models import (
    Approval,
    DeviceToken,
    Parent,
    Principal,
    School,
    SchoolAdmin,
    Teacher,
    User,
)
from src.infrastructure.database.models.base import new_uuid
from src.infrastructure.notifications.email import EmailSender
from src.models.auth import RegisterRequest
from src.models.common import (
    APPROVAL_ROLES,
    SCHOOL_BOUND_ROLES,
    ApprovalStatus,
    NotificationType,
    Role,
)
from src.utils.datetime import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class AuthServiceError(ServiceError):
    """Base exception for authentication errors."""

    pass


class InvalidCredentialsError(AuthServiceError, AuthenticationFailedError):
    """Raised when email or password is wrong."""

    pass


class AccountInactiveError(AuthServiceError, AuthenticationFailedError):
    """Raised when account is not active."""

    pass


class SchoolNotVerifiedError(AuthServiceError, PermissionDeniedError):
    """Raised when a staff user's school has not been verified yet."""

    pass


class RegistrationRejectedError(AuthServiceError, PermissionDeniedError):
    """Raised when a principal/teacher registration was rejected."""

    pass


class SignupNotAllowedError(AuthServiceError, PermissionDeniedError):
    """Raised when self-registration is not allowed for the requested role."""

    pass


class UserExistsError(AuthServiceError, ConflictError):
    """Raised when email or username is already taken."""

    pass


class RegistrationSchoolNotFoundError(AuthServiceError, NotFoundError):
    """Raised when the school referenced at registration does not exist."""

    pass


class InvalidRefreshTokenError(AuthServiceError, AuthenticationFailedError):
    """Raised when token refresh fails."""

    pass


class InvalidResetTokenError(AuthServiceError, AuthenticationFailedError):
    """Raised when a password reset token is bad, expired or already used."""

    pass


class DeviceInfo(NamedTuple):
    """Device information for session tracking."""

    device_type: str = "WEB"
    ip_address: str | None = None
    user_agent: str | None = None


@dataclass
class UserClaims:
    """Tenant and approval claims derived from a user's profile rows."""

    school_id: str | None = None
    tenant_id: str | None = None
    approval_status: str | None = None


@dataclass
class AuthResult:
    """Outcome of a successful register or login."""

    user: User
    tokens: TokenPair
    claims: UserClaims


_PROFILE_MODELS = {
    Role.SCHOOL_ADMIN: SchoolAdmin,
    Role.PRINCIPAL: Principal,
    Role.TEACHER: Teacher,
}


class AuthService:
    """Authentication service.

    Attributes:
        _db: Async database session.
        _jwt: JWT manager for token operations.
        _hasher: bcrypt password hasher.
        _email: Optional sender for password reset emails.
        _allow_super_admin_signup: Whether SUPER_ADMIN may self-register.
    """

    def __init__(
        self,
        db: AsyncSession,
        jwt_manager: JWTManager,
        password_hasher: PasswordHasher,
        *,
        email_sender: EmailSender | None = None,
        allow_super_admin_signup: bool = False,
    ) -> None:
        """Initialize the authentication service.

        Args:
            db: Async database session.
            jwt_manager: JWT manager for token operations.
            password_hasher: Password hasher.
            email_sender: Sender used for password reset links.
            allow_super_admin_signup: Permit SUPER_ADMIN self-registration.
        """
        self._db = db
        self._jwt = jwt_manager
        self._hasher = password_hasher
        self._email = email_sender
        self._allow_super_admin_signup = allow_super_admin_signup

    async def register(
        self,
        request: RegisterRequest,
        device: DeviceInfo | None = None,
    ) -> AuthResult:
        """Register a new account and open its first session.

        The user, role profile, approval (principal/teacher), device token
        and welcome notification are committed together.

        Args:
            request: Registration data.
            device: Client device information.

        Returns:
            AuthResult with the new user and issued tokens.

        Raises:
            SignupNotAllowedError: If SUPER_ADMIN signup is disabled.
            UserExistsError: If email or username is taken.
            RegistrationSchoolNotFoundError: If school_id does not exist.
        """
        role = Role(request.role)
        if role == Role.SUPER_ADMIN and not self._allow_super_admin_signup:
            raise SignupNotAllowedError("Super admin accounts cannot be self-registered")

        existing = await self._db.execute(
            select(User.id).where(
                (User.email == request.email) | (User.username == request.username)
            )
        )
        if existing.first() is not None:
            raise UserExistsError("Email or username already exists")

        school: School | None = None
        if role in SCHOOL_BOUND_ROLES:
            school = await self._db.get(School, str(request.school_id))
            if school is None:
                raise RegistrationSchoolNotFoundError("School not found")

        user = User(
            id=new_uuid(),
            email=request.email,
            username=request.username,
            password_hash=self._hasher.hash(request.password),
            name=request.name,
            surname=request.surname,
            role=role,
            is_active=True,
        )
        self._db.add(user)
        self._add_profile(user.id, role, request)

        claims = UserClaims()
        if school is not None:
            claims.school_id = school.id
            claims.tenant_id = school.tenant_id
        if role in APPROVAL_ROLES:
            self._db.add(
                Approval(
                    user_id=user.id,
                    role=role,
                    school_id=school.id,
                    status=ApprovalStatus.PENDING,
                )
            )
            claims.approval_status = ApprovalStatus.PENDING

        tokens = self._issue_tokens(user, claims, device)

        welcome = f"Welcome to EduTrack, {user.name}!"
        if claims.approval_status == ApprovalStatus.PENDING:
            welcome += " Your account is awaiting approval."
        NotificationService(self._db).notify_users(
            [user.id],
            title="Welcome to EduTrack",
            content=welcome,
            type=NotificationType.GENERAL,
        )

        try:
            await self._db.commit()
        except IntegrityError as e:
            await self._db.rollback()
            raise UserExistsError("Email or username already exists") from e

        logger.info("User registered: id=%s, role=%s, school=%s", user.id, role, claims.school_id)
        return AuthResult(user=user, tokens=tokens, claims=claims)

    def _add_profile(self, user_id: str, role: Role, request: RegisterRequest) -> None:
        school_id = str(request.school_id) if request.school_id else None
        if role == Role.SCHOOL_ADMIN:
            self._db.add(SchoolAdmin(id=user_id, school_id=school_id))
        elif role == Role.PRINCIPAL:
            self._db.add(Principal(id=user_id, school_id=school_id, image_url=request.image_url))
        elif role == Role.TEACHER:
            self._db.add(
                Teacher(
                    id=user_id,
                    school_id=school_id,
                    qualifications=request.qualifications,
                    bio=request.bio,
                    image_url=request.image_url,
                )
            )
        elif role == Role.PARENT:
            self._db.add(Parent(id=user_id, phone=request.phone))

    async def login(
        self,
        email: str,
        password: str,
        device: DeviceInfo | None = None,
    ) -> AuthResult:
        """Authenticate with email and password.

        Args:
            email: Login email.
            password: Plain text password.
            device: Client device information.

        Returns:
            AuthResult with a fresh token pair.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password.
            AccountInactiveError: Account has been deactivated.
            SchoolNotVerifiedError: Staff school not verified yet.
            RegistrationRejectedError: Approval was rejected.
        """
        result = await self._db.execute(select(User).where(User.email == email.lower()))
        user = result.scalar_one_or_none()

        if user is None:
            self._hasher.burn_time(password)
            raise InvalidCredentialsError("Invalid credentials")

        if not self._hasher.verify(password, user.password_hash):
            logger.info("Login failed: user=%s", user.id)
            raise InvalidCredentialsError("Invalid credentials")

        if not user.is_active:
            raise AccountInactiveError("Account is inactive")

        claims = await self.resolve_claims(user)

        if user.role in SCHOOL_BOUND_ROLES and claims.school_id:
            school = await self._db.get(School, claims.school_id)
            if school is not None and not school.is_verified:
                raise SchoolNotVerifiedError("School is not verified")

        if claims.approval_status == ApprovalStatus.REJECTED:
            raise RegistrationRejectedError("Account registration was rejected")

        tokens = self._issue_tokens(user, claims, device)
        user.last_login = utc_now()
        await self._db.commit()

        logger.info("User logged in: id=%s, role=%s", user.id, user.role)
        return AuthResult(user=user, tokens=tokens, claims=claims)

    async def refresh(self, refresh_token: str) -> tuple[str, int]:
        """Issue a new access token for a valid refresh token.

        Args:
            refresh_token: Refresh token from login or register.

        Returns:
            Tuple of (access token, lifetime in seconds).

        Raises:
            InvalidRefreshTokenError: If the token is invalid, revoked or
                expired, or the user is inactive.
        """
        try:
            payload = self._jwt.decode_token(refresh_token, "refresh")
        except JWTError as e:
            raise InvalidRefreshTokenError("Invalid refresh token") from e

        result = await self._db.execute(
            select(DeviceToken).where(
                DeviceToken.token_hash == self._jwt.hash_token(refresh_token),
                DeviceToken.user_id == payload.sub,
                DeviceToken.is_active.is_(True),
            )
        )
        device_token = result.scalar_one_or_none()
        if device_token is None or ensure_utc(device_token.expires_at) <= utc_now():
            raise InvalidRefreshTokenError("Invalid refresh token")

        user = await self._db.get(User, payload.sub)
        if user is None or not user.is_active:
            raise InvalidRefreshTokenError("Invalid refresh token")

        claims = await self.resolve_claims(user)
        if claims.approval_status == ApprovalStatus.REJECTED:
            raise InvalidRefreshTokenError("Invalid refresh token")

        access_token = self._jwt.create_access_token(
            user_id=user.id,
            role=user.role,
            school_id=claims.school_id,
            tenant_id=claims.tenant_id,
            approval_status=claims.approval_status,
        )
        device_token.last_used_at = utc_now()
        await self._db.commit()

        logger.debug("Access token refreshed: user=%s", user.id)
        return access_token, self._jwt.access_lifetime_seconds

    async def logout(self, user_id: str, refresh_token: str) -> bool:
        """Revoke the device token behind a refresh token.

        Args:
            user_id: Caller ID; tokens of other users are left alone.
            refresh_token: Refresh token to revoke.

        Returns:
            True if an active token was revoked.
        """
        result = await self._db.execute(
            update(DeviceToken)
            .where(
                DeviceToken.token_hash == self._jwt.hash_token(refresh_token),
                DeviceToken.user_id == user_id,
                DeviceToken.is_active.is_(True),
            )
            .values(is_active=False, revoked_at=utc_now())
        )
        await self._db.commit()

        revoked = bool(result.rowcount)
        logger.info("User logged out: user=%s, revoked=%s", user_id, revoked)
        return revoked

    async def request_password_reset(self, email: str) -> str | None:
        """Start a password reset.

        Unknown or inactive accounts are ignored silently so the response
        does not reveal which emails are registered.

        Returns:
            The reset token when one was issued, else None.
        """
        result = await self._db.execute(select(User).where(User.email == email.lower()))
        user = result.scalar_one_or_none()
        if user is None or not user.is_active:
            logger.info("Password reset requested for unknown or inactive account")
            return None

        token = self._jwt.create_reset_token(user.id, user.password_hash)
        if self._email is not None:
            await self._email.send_password_reset(user.email, user.name, token)

        logger.info("Password reset token issued: user=%s", user.id)
        return token

    async def confirm_password_reset(self, token: str, new_password: str) -> None:
        """Set a new password and revoke every session of the user.

        Raises:
            InvalidResetTokenError: If the token is bad, expired or was
                already used (the password changed since it was issued).
        """
        try:
            payload = self._jwt.decode_token(token, "reset")
        except JWTError as e:
            raise InvalidResetTokenError("Invalid or expired reset token") from e

        user = await self._db.get(User, payload.sub)
        if (
            user is None
            or not user.is_active
            or payload.fingerprint != self._jwt.password_fingerprint(user.password_hash)
        ):
            raise InvalidResetTokenError("Invalid or expired reset token")

        user.password_hash = self._hasher.hash(new_password)
        await self._db.execute(
            update(DeviceToken)
            .where(DeviceToken.user_id == user.id, DeviceToken.is_active.is_(True))
            .values(is_active=False, revoked_at=utc_now())
        )
        await self._db.commit()

        logger.info("Password reset completed: user=%s", user.id)

    async def get_user(self, user_id: str) -> User | None:
        return await self._db.get(User, user_id)

    async def resolve_claims(self, user: User) -> UserClaims:
        """Look up the school, tenant and approval claims of a user."""
        claims = UserClaims()

        profile_model = _PROFILE_MODELS.get(user.role)
        if profile_model is not None:
            profile = await self._db.get(profile_model, user.id)
            if profile is not None:
                claims.school_id = profile.school_id
                school = await self._db.get(School, profile.school_id)
                if school is not None:
                    claims.tenant_id = school.tenant_id

        if user.role in APPROVAL_ROLES:
            result = await self._db.execute(
                select(Approval.status).where(Approval.user_id == user.id)
            )
            claims.approval_status = result.scalar_one_or_none()

        return claims

    def _issue_tokens(
        self,
        user: User,
        claims: UserClaims,
        device: DeviceInfo | None,
    ) -> TokenPair:
        device = device or DeviceInfo()
        tokens = self._jwt.create_token_pair(
            user_id=user.id,
            role=user.role,
            school_id=claims.school_id,
            tenant_id=claims.tenant_id,
            approval_status=claims.approval_status,
        )
        self._db.add(
            DeviceToken(
                user_id=user.id,
                token_hash=self._jwt.hash_token(tokens.refresh_token),
                device_type=device.device_type,
                user_agent=(device.user_agent or "")[:500] or None,
                ip_address=device.ip_address,
                is_active=True,
                expires_at=utc_now() + self._jwt.refresh_lifetime,
            )
        )
        return tokens
