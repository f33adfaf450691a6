# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication domain.

Exports:
    PasswordHasher: bcrypt hashing for registration passwords.
    IdentityProvider: Protocol for the external authentication service.
    GoTrueIdentityProvider: httpx client for the GoTrue admin API.
    IdentityServiceError: Raised on failed identity calls.
"""

from src.domains.auth.identity import (
    GoTrueIdentityProvider,
    IdentityProvider,
    IdentityServiceError,
)
from src.domains.auth.password import PasswordHasher, hash_password, verify_password

__all__ = [
    "GoTrueIdentityProvider",
    "IdentityProvider",
    "IdentityServiceError",
    "PasswordHasher",
    "hash_password",
    "verify_password",
]
