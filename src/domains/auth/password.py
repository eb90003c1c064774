# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Password hashing with bcrypt.

Example:
    >>> hasher = PasswordHasher(rounds=4)
    >>> hashed = hasher.hash("my_password")
    >>> hasher.verify("my_password", hashed)
    True
"""

import logging

import bcrypt

logger = logging.getLogger(__name__)

# bcrypt only considers the first 72 bytes and newer releases reject longer input
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """bcrypt password hasher.

    Login for an unknown email still runs one bcrypt comparison through
    burn_time(), so response timing does not reveal which accounts exist.

    Attributes:
        _rounds: bcrypt cost factor.
    """

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds
        self._dummy_hash: bytes | None = None

    def hash(self, password: str) -> str:
        """Hash a password.

        Args:
            password: Plain text password.

        Returns:
            bcrypt hash string with the salt embedded.

        Raises:
            ValueError: If the password is empty or longer than 72 bytes.
        """
        encoded = password.encode("utf-8")
        if not encoded:
            raise ValueError("Password cannot be empty")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password cannot exceed {MAX_PASSWORD_BYTES} bytes")

        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self._rounds)).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Check a password against a stored hash.

        Returns:
            True if the password matches, False otherwise (including for
            malformed hashes and over-long passwords).
        """
        if not password or not password_hash:
            return False

        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError as e:
            logger.warning("Password verification failed: %s", str(e))
            return False

    def burn_time(self, password: str) -> None:
        """Run a comparison against a throwaway hash and discard the result."""
        if self._dummy_hash is None:
            self._dummy_hash = bcrypt.hashpw(b"edutrack-dummy", bcrypt.gensalt(rounds=self._rounds))
        encoded = password.encode("utf-8")[:MAX_PASSWORD_BYTES] or b"x"
        bcrypt.checkpw(encoded, self._dummy_hash)
