# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication domain services.

This module provides authentication services:
- Password hashing with bcrypt
- JWT access, refresh and reset token creation and validation
- Registration, login, refresh, logout and password reset

Exports:
    PasswordHasher: Secure password hashing using bcrypt.
    JWTManager: JWT token creation and validation.
    AuthService: Registration and session management service.
"""

from src.domains.auth.jwt import JWTManager
from src.domains.auth.password import PasswordHasher
from src.domains.auth.service import AuthService, DeviceInfo

__all__ = [
    "PasswordHasher",
    "JWTManager",
    "AuthService",
    "DeviceInfo",
]
