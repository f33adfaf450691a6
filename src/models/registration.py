# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request and response models for the registration API.

Submission fields are accepted as plain strings; the intake service owns
field validation so that API and direct callers get the same per-field
error messages.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

DecisionAction = Literal["reject", "approve_regular", "approve_company"]
StatusFilter = Literal["pending", "approved", "rejected", "all"]


class RegistrationSubmitRequest(BaseModel):
    """Applicant-supplied registration form."""

    email: str = ""
    password: str = Field(default="", repr=False)
    confirm_password: str = Field(default="", repr=False)
    first_name: str = ""
    last_name: str = ""
    phone: str | None = None
    bio: str | None = None
    department: str | None = None
    position: str | None = None
    employee_id: str | None = None


class RegistrationResponse(BaseModel):
    """A registration request as shown to administrators."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    first_name: str
    last_name: str
    full_name: str
    phone: str | None = None
    bio: str | None = None
    department: str | None = None
    position: str | None = None
    employee_id: str | None = None
    status: str
    created_at: datetime


class RegistrationListResponse(BaseModel):
    """One page of registration requests."""

    items: list[RegistrationResponse]
    total: int
    limit: int
    offset: int


class RegistrationStatsResponse(BaseModel):
    """Request counts by status."""

    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0


class DecisionRequest(BaseModel):
    """Administrator decision on a pending request.

    ``company_id`` is required when ``action`` is ``approve_company``; the
    decision engine rejects the request otherwise.
    """

    action: DecisionAction
    company_id: str | None = None
    notes: str | None = None


class DecisionResponse(BaseModel):
    """Outcome of a committed decision."""

    registration_id: str
    status: str
    action: str
    user_id: str | None = None
    company_id: str | None = None
    approval_log_id: str
    profile_created: bool = False
    message: str


class ApprovalLogResponse(BaseModel):
    """An approval log entry."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    registration_id: str
    user_id: str | None = None
    approved_by: str
    action: str
    company_id: str | None = None
    notes: str | None = None
    created_at: datetime


class CompanyResponse(BaseModel):
    """A company available for assignment."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    contact_person: str | None = None
    email: str | None = None
    phone: str | None = None
