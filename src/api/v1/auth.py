# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication API endpoints.

This module provides endpoints for user authentication:
- POST /register - Create an account and open a session
- POST /login - Email and password login
- POST /refresh - Refresh access token
- POST /logout - Revoke a refresh token
- POST /password-reset/request - Email a password reset link
- POST /password-reset/confirm - Set a new password with a reset token
- GET /me - Get current user info

Example:
    POST /api/v1/auth/login
    Body:
        {"email": "teacher@school.edu", "password": "..."}
"""

import logging

from fastapi import APIRouter, Depends, Request, status

from src.api.dependencies import get_auth_service, require_auth
from src.api.middleware.auth import CurrentUser
from src.api.middleware.rate_limit import auth_rate_limit, limiter
from src.domains.auth.service import AuthResult, AuthService, DeviceInfo, InvalidCredentialsError
from src.models.auth import (
    AuthResponse,
    LoginRequest,
    LogoutRequest,
    MeResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    UserSummary,
)
from src.models.common import MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter()

RESET_REQUESTED_MESSAGE = "If the email exists, a reset link will be sent"


def _get_device_info(request: Request) -> DeviceInfo:
    """Extract device info from request.

    Args:
        request: HTTP request.

    Returns:
        DeviceInfo with client information.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        ip = forwarded.split(",")[0].strip()
    else:
        ip = request.client.host if request.client else None

    user_agent = request.headers.get("User-Agent", "")

    device_type = "WEB"
    ua_lower = user_agent.lower()
    if "android" in ua_lower:
        device_type = "ANDROID"
    elif "iphone" in ua_lower or "ipad" in ua_lower:
        device_type = "IOS"

    return DeviceInfo(
        device_type=device_type,
        ip_address=ip,
        user_agent=user_agent[:500] if user_agent else None,
    )


def _auth_response(message: str, result: AuthResult) -> AuthResponse:
    return AuthResponse(
        message=message,
        user=UserSummary.model_validate(result.user),
        access_token=result.tokens.access_token,
        refresh_token=result.tokens.refresh_token,
        token_type=result.tokens.token_type,
        expires_in=result.tokens.expires_in,
        school_id=result.claims.school_id,
        approval_status=result.claims.approval_status,
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
    description="""
    Create a user with the role profile for the requested role.

    Principals and teachers start with a PENDING approval: they can log in
    but staff endpoints answer 403 until a reviewer approves them.
    """,
)
@limiter.limit(auth_rate_limit)
async def register(
    request: Request,
    body: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    result = await auth_service.register(body, _get_device_info(request))
    return _auth_response("User registered successfully", result)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Log in with email and password",
)
@limiter.limit(auth_rate_limit)
async def login(
    request: Request,
    body: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    result = await auth_service.login(body.email, body.password, _get_device_info(request))
    return _auth_response("Login successful", result)


@router.post(
    "/refresh",
    response_model=RefreshResponse,
    summary="Refresh access token",
)
@limiter.limit(auth_rate_limit)
async def refresh(
    request: Request,
    body: RefreshRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> RefreshResponse:
    access_token, expires_in = await auth_service.refresh(body.refresh_token)
    return RefreshResponse(
        message="Token refreshed successfully",
        access_token=access_token,
        expires_in=expires_in,
    )


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Revoke a refresh token",
)
async def logout(
    body: LogoutRequest,
    current_user: CurrentUser = Depends(require_auth),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth_service.logout(current_user.id, body.refresh_token)
    return MessageResponse(message="Logout successful")


@router.post(
    "/password-reset/request",
    response_model=MessageResponse,
    summary="Request a password reset email",
)
@limiter.limit(auth_rate_limit)
async def request_password_reset(
    request: Request,
    body: PasswordResetRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth_service.request_password_reset(body.email)
    return MessageResponse(message=RESET_REQUESTED_MESSAGE)


@router.post(
    "/password-reset/confirm",
    response_model=MessageResponse,
    summary="Set a new password with a reset token",
)
@limiter.limit(auth_rate_limit)
async def confirm_password_reset(
    request: Request,
    body: PasswordResetConfirm,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth_service.confirm_password_reset(body.token, body.new_password)
    return MessageResponse(message="Password has been reset successfully")


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Get current user",
)
async def get_me(
    current_user: CurrentUser = Depends(require_auth),
    auth_service: AuthService = Depends(get_auth_service),
) -> MeResponse:
    user = await auth_service.get_user(current_user.id)
    if user is None or not user.is_active:
        raise InvalidCredentialsError("User not found or inactive")

    claims = await auth_service.resolve_claims(user)
    return MeResponse(
        message="User retrieved successfully",
        user=UserSummary.model_validate(user),
        school_id=claims.school_id,
        tenant_id=claims.tenant_id,
        approval_status=claims.approval_status,
    )
