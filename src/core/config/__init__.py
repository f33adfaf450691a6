# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for the registration service.

This package provides centralized configuration management through
Pydantic-based settings loaded from environment variables.

Example:
    >>> from src.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.registration.min_password_length)
    6
"""

from src.core.config.settings import (
    APISettings,
    CORSSettings,
    DatabaseSettings,
    IdentityProviderSettings,
    RegistrationSettings,
    Settings,
    SMTPSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "APISettings",
    "CORSSettings",
    "DatabaseSettings",
    "IdentityProviderSettings",
    "RegistrationSettings",
    "Settings",
    "SMTPSettings",
    "clear_settings_cache",
    "get_settings",
]
