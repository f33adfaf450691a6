# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Registration API endpoints.

This module exposes the registration approval workflow:
- POST /registrations - Submit a registration (public)
- GET /registrations - List requests for review
- GET /registrations/stats - Counts by status
- GET /registrations/{id} - Request details
- POST /registrations/{id}/decision - Reject or approve a pending request
- GET /registrations/{id}/approval-logs - Audit entries for a request

Authentication:
    Submission is public. Every other endpoint requires the X-Actor-Id
    header carrying the authenticated administrator's user id.

Example:
    POST /api/v1/registrations/6f1c.../decision
    Headers:
        X-Actor-Id: 0b7e...
    Body:
        {"action": "approve_company", "company_id": "c9d2...", "notes": "Sales team"}
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import (
    get_acting_admin,
    get_db,
    get_identity_provider,
    get_notification_service,
    get_password_hasher,
)
from src.core.config import Settings, get_settings
from src.domains.auth.identity import IdentityProvider
from src.domains.auth.password import PasswordHasher
from src.domains.registration import (
    ApprovalDecisionEngine,
    AuditTrail,
    AuthProvisioningError,
    ConflictError,
    DecisionRecordError,
    DuplicateEmailError,
    IdentityProvisioner,
    InvalidStateError,
    RegistrationError,
    RegistrationIntake,
    RegistrationNotFoundError,
    RegistrationQueries,
    UnauthorizedError,
    UserRecordError,
    ValidationError,
    decision_from_action,
)
from src.infrastructure.events import ChangeNotificationBus, get_change_bus
from src.infrastructure.notifications import NotificationService
from src.models.registration import (
    ApprovalLogResponse,
    DecisionRequest,
    DecisionResponse,
    RegistrationListResponse,
    RegistrationResponse,
    RegistrationStatsResponse,
    RegistrationSubmitRequest,
    StatusFilter,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Most specific classes first
_STATUS_BY_ERROR: dict[type[RegistrationError], int] = {
    ValidationError: 422,
    DuplicateEmailError: status.HTTP_409_CONFLICT,
    RegistrationNotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidStateError: status.HTTP_409_CONFLICT,
    ConflictError: status.HTTP_409_CONFLICT,
    AuthProvisioningError: status.HTTP_502_BAD_GATEWAY,
    UserRecordError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    DecisionRecordError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    UnauthorizedError: status.HTTP_401_UNAUTHORIZED,
}


def _http_error(error: RegistrationError) -> HTTPException:
    """Translate a workflow error into an HTTPException."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for cls in type(error).__mro__:
        if cls in _STATUS_BY_ERROR:
            status_code = _STATUS_BY_ERROR[cls]
            break
    return HTTPException(status_code=status_code, detail=error.to_dict())


def _get_decision_engine(
    db: AsyncSession,
    identity_provider: IdentityProvider,
    notifier: NotificationService,
    bus: ChangeNotificationBus,
    settings: Settings,
) -> ApprovalDecisionEngine:
    """Wire a decision engine onto one session."""
    return ApprovalDecisionEngine(
        db=db,
        provisioner=IdentityProvisioner(db, identity_provider, settings.registration),
        audit=AuditTrail(db),
        bus=bus,
        notifier=notifier,
        settings=settings.registration,
    )


@router.post(
    "",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a registration",
    description="""
    Submit an application for platform access.

    The request is stored as pending; no account exists until an
    administrator approves it. The password is stored only as a bcrypt hash.

    **Errors:**
    - 422 with per-field `errors` when the form is invalid
    - 409 when a pending request or an account already uses the email
    """,
    responses={
        201: {"description": "Registration stored as pending"},
        409: {"description": "Email already in use"},
        422: {"description": "Invalid form"},
    },
)
async def submit_registration(
    candidate: RegistrationSubmitRequest,
    db: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    bus: ChangeNotificationBus = Depends(get_change_bus),
    settings: Settings = Depends(get_settings),
) -> RegistrationResponse:
    """Store a pending registration request."""
    intake = RegistrationIntake(db, hasher, bus=bus, settings=settings.registration)
    try:
        request = await intake.submit(candidate)
    except RegistrationError as e:
        raise _http_error(e) from e

    return RegistrationResponse.model_validate(request)


@router.get(
    "",
    response_model=RegistrationListResponse,
    summary="List registrations",
    description="""
    List registration requests, newest first.

    `status` defaults to `pending`; use `all` to include decided requests.
    `search` matches email, full name and department, case-insensitively.
    """,
)
async def list_registrations(
    status_filter: StatusFilter = Query("pending", alias="status"),
    search: str | None = Query(None, max_length=255),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    admin_id: str = Depends(get_acting_admin),
) -> RegistrationListResponse:
    """List registration requests."""
    try:
        page = await RegistrationQueries(db).list_registrations(
            status=status_filter,
            search=search,
            limit=limit,
            offset=offset,
        )
    except RegistrationError as e:
        raise _http_error(e) from e

    return RegistrationListResponse(
        items=[RegistrationResponse.model_validate(item) for item in page.items],
        total=page.total,
        limit=page.limit,
        offset=page.offset,
    )


@router.get(
    "/stats",
    response_model=RegistrationStatsResponse,
    summary="Registration statistics",
)
async def registration_stats(
    db: AsyncSession = Depends(get_db),
    admin_id: str = Depends(get_acting_admin),
) -> RegistrationStatsResponse:
    """Count registration requests by status."""
    stats = await RegistrationQueries(db).get_stats()
    return RegistrationStatsResponse(
        total=stats.total,
        pending=stats.pending,
        approved=stats.approved,
        rejected=stats.rejected,
    )


@router.get(
    "/{registration_id}",
    response_model=RegistrationResponse,
    summary="Get a registration",
    responses={404: {"description": "Registration not found"}},
)
async def get_registration(
    registration_id: str,
    db: AsyncSession = Depends(get_db),
    admin_id: str = Depends(get_acting_admin),
) -> RegistrationResponse:
    """Fetch one registration request."""
    try:
        request = await RegistrationQueries(db).get_registration(registration_id)
    except RegistrationError as e:
        raise _http_error(e) from e

    return RegistrationResponse.model_validate(request)


@router.post(
    "/{registration_id}/decision",
    response_model=DecisionResponse,
    summary="Decide a registration",
    description="""
    Reject or approve a pending registration request.

    Actions:
    - `reject`: marks the request rejected and records the decision
    - `approve_regular`: creates the identity, user and profile
    - `approve_company`: same, assigning the user to `company_id`

    Provisioning failures leave the request pending; the error names the
    failed step so the decision can be retried.

    **Errors:**
    - 404 unknown request
    - 409 request no longer pending, or decided concurrently
    - 422 missing or unknown company
    - 502 identity service failure
    - 500 user record or audit failure
    """,
    responses={
        200: {"description": "Decision committed"},
        401: {"description": "No acting administrator"},
        404: {"description": "Registration not found"},
        409: {"description": "Registration already decided"},
        422: {"description": "Invalid decision"},
        500: {"description": "User record or decision could not be written"},
        502: {"description": "Identity service failed"},
    },
)
async def decide_registration(
    registration_id: str,
    body: DecisionRequest,
    db: AsyncSession = Depends(get_db),
    admin_id: str = Depends(get_acting_admin),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    notifier: NotificationService = Depends(get_notification_service),
    bus: ChangeNotificationBus = Depends(get_change_bus),
    settings: Settings = Depends(get_settings),
) -> DecisionResponse:
    """Apply an administrator decision."""
    engine = _get_decision_engine(db, identity_provider, notifier, bus, settings)
    try:
        decision = decision_from_action(body.action, body.company_id, body.notes)
        outcome = await engine.decide(registration_id, decision, admin_id)
    except RegistrationError as e:
        logger.info(
            "Decision rejected: registration=%s, action=%s, error=%s",
            registration_id,
            body.action,
            e.__class__.__name__,
        )
        raise _http_error(e) from e

    return DecisionResponse(
        registration_id=registration_id,
        status=outcome.status,
        action=outcome.action.value,
        user_id=outcome.user_id,
        company_id=outcome.company_id,
        approval_log_id=outcome.approval_log.id,
        profile_created=outcome.profile_created,
        message=outcome.message,
    )


@router.get(
    "/{registration_id}/approval-logs",
    response_model=list[ApprovalLogResponse],
    summary="Approval log for a registration",
    responses={404: {"description": "Registration not found"}},
)
async def list_approval_logs(
    registration_id: str,
    db: AsyncSession = Depends(get_db),
    admin_id: str = Depends(get_acting_admin),
) -> list[ApprovalLogResponse]:
    """List audit entries for a registration request."""
    try:
        await RegistrationQueries(db).get_registration(registration_id)
    except RegistrationError as e:
        raise _http_error(e) from e

    entries = await AuditTrail(db).list_for_registration(registration_id)
    return [ApprovalLogResponse.model_validate(entry) for entry in entries]
