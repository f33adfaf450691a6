# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Registration approval workflow.

Components:
- RegistrationIntake: validates submissions and stores pending requests.
- ApprovalDecisionEngine: applies reject/approve decisions under a status
  guard.
- IdentityProvisioner: creates identity, user and profile on approval.
- AuditTrail: append-only approval log.
- RegistrationQueries: listing, stats and lookups for reviewers.
"""

from src.domains.registration.audit import AuditTrail
from src.domains.registration.decision import (
    ApprovalDecisionEngine,
    ApprovalNotifier,
    ApproveCompany,
    ApproveRegular,
    Decision,
    DecisionOutcome,
    Reject,
    decision_from_action,
)
from src.domains.registration.errors import (
    AuthProvisioningError,
    CompanyNotFoundError,
    ConflictError,
    DecisionRecordError,
    DuplicateEmailError,
    InvalidStateError,
    ProfileWriteWarning,
    ProvisioningError,
    RegistrationError,
    RegistrationNotFoundError,
    UnauthorizedError,
    UserRecordError,
    ValidationError,
)
from src.domains.registration.intake import RegistrationIntake, normalize_email, validate_candidate
from src.domains.registration.provisioner import IdentityProvisioner, ProvisioningResult
from src.domains.registration.queries import (
    RegistrationPage,
    RegistrationQueries,
    RegistrationStats,
)

__all__ = [
    "ApprovalDecisionEngine",
    "ApprovalNotifier",
    "ApproveCompany",
    "ApproveRegular",
    "AuditTrail",
    "AuthProvisioningError",
    "CompanyNotFoundError",
    "ConflictError",
    "Decision",
    "DecisionOutcome",
    "DecisionRecordError",
    "DuplicateEmailError",
    "IdentityProvisioner",
    "InvalidStateError",
    "ProfileWriteWarning",
    "ProvisioningError",
    "ProvisioningResult",
    "RegistrationError",
    "RegistrationIntake",
    "RegistrationNotFoundError",
    "RegistrationPage",
    "RegistrationQueries",
    "RegistrationStats",
    "Reject",
    "UnauthorizedError",
    "UserRecordError",
    "ValidationError",
    "decision_from_action",
    "normalize_email",
    "validate_candidate",
]
