# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API layer for the LearnPortal registration service.

Run with:
    uvicorn src.api.app:create_app --factory
    learnportal-api
"""

from src.api.app import create_app

__all__ = ["create_app"]
