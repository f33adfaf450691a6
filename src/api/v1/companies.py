# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Company catalogue endpoints.

- GET /companies - Companies available for assignment, ordered by name
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_acting_admin, get_db
from src.domains.registration import RegistrationQueries
from src.models.registration import CompanyResponse

router = APIRouter()


@router.get(
    "",
    response_model=list[CompanyResponse],
    summary="List companies",
)
async def list_companies(
    db: AsyncSession = Depends(get_db),
    admin_id: str = Depends(get_acting_admin),
) -> list[CompanyResponse]:
    """List companies for the approve-with-company selector."""
    companies = await RegistrationQueries(db).list_companies()
    return [CompanyResponse.model_validate(company) for company in companies]
