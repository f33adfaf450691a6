# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    registrations: Registration submission, review and decisions.
    companies: Company catalogue for company assignment.
    changes: Server-Sent Events stream of table changes.
"""

from fastapi import APIRouter

from src.api.v1 import changes, companies, registrations

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Include domain routers
router.include_router(registrations.router, prefix="/registrations", tags=["Registrations"])
router.include_router(companies.router, prefix="/companies", tags=["Companies"])
router.include_router(changes.router, prefix="/changes", tags=["Changes"])

__all__ = ["router"]
