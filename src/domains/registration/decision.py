# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Approval decisions on pending registration requests.

A request starts pending and ends in exactly one terminal state:

    pending --Reject-->          rejected
    pending --ApproveRegular-->  approved (no company)
    pending --ApproveCompany-->  approved (company_id set)

Decisions are modelled as a small sum type so the company id travels only
with the variant that needs it.

Concurrency: every decision first claims the request with a conditional
``UPDATE ... WHERE status = 'pending'`` inside the decision transaction.
Only one transaction can flip the row; a loser sees zero affected rows
and gets ConflictError before anything is provisioned. The row stays
locked until commit, and if a mandatory provisioning step fails the whole
transaction, claim included, rolls back so the request is still pending.

Example:
    >>> engine = ApprovalDecisionEngine(db, provisioner, AuditTrail(db))
    >>> outcome = await engine.decide(request_id, ApproveCompany("c-9"), admin_id)
    >>> outcome.status
    'approved'
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, Union

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from src.core.config.settings import RegistrationSettings
from src.domains.registration.audit import AuditTrail
from src.domains.registration.errors import (
    CompanyNotFoundError,
    ConflictError,
    DecisionRecordError,
    InvalidStateError,
    ProfileWriteWarning,
    RegistrationError,
    RegistrationNotFoundError,
    UnauthorizedError,
    ValidationError,
)
from src.domains.registration.provisioner import IdentityProvisioner, ProvisioningResult
from src.infrastructure.database.models import (
    ApprovalAction,
    ApprovalLog,
    Company,
    RegistrationRequest,
    RegistrationStatus,
)
from src.infrastructure.events import ChangeEvent, ChangeNotificationBus, Tables

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reject:
    """Decline the request."""

    notes: str | None = None


@dataclass(frozen=True)
class ApproveRegular:
    """Approve without assigning a company."""

    notes: str | None = None


@dataclass(frozen=True)
class ApproveCompany:
    """Approve and assign the new user to a company."""

    company_id: str
    notes: str | None = None


Decision = Union[Reject, ApproveRegular, ApproveCompany]


def decision_from_action(
    action: str,
    company_id: str | None = None,
    notes: str | None = None,
) -> Decision:
    """Build a Decision from its wire form.

    Raises:
        ValidationError: If the action is unknown, or approve_company has
            no company id.
    """
    notes = notes.strip() if notes and notes.strip() else None
    if action == "reject":
        return Reject(notes=notes)
    if action == "approve_regular":
        return ApproveRegular(notes=notes)
    if action == "approve_company":
        if not company_id or not company_id.strip():
            raise ValidationError(
                "A company must be selected to approve with company assignment",
                field="company_id",
            )
        return ApproveCompany(company_id=company_id.strip(), notes=notes)
    raise ValidationError(f"Unknown decision action: {action}", field="action")


class ApprovalNotifier(Protocol):
    """Sends the post-approval message to the new user."""

    async def notify_account_approved(
        self,
        user_id: str,
        email: str,
        full_name: str | None = None,
        company_name: str | None = None,
    ) -> Any:
        ...


@dataclass
class DecisionOutcome:
    """Result of a committed decision.

    Attributes:
        registration: The decided request.
        action: Recorded action.
        approval_log: The appended log entry.
        provisioning: Provisioning result for approvals, None for rejections.
        company: Assigned company for company approvals.
    """

    registration: RegistrationRequest
    action: ApprovalAction
    approval_log: ApprovalLog
    provisioning: ProvisioningResult | None = None
    company: Company | None = None
    warnings: list[ProfileWriteWarning] = field(default_factory=list)

    @property
    def status(self) -> str:
        return self.registration.status

    @property
    def user_id(self) -> str | None:
        return self.provisioning.user_id if self.provisioning else None

    @property
    def company_id(self) -> str | None:
        return self.company.id if self.company else None

    @property
    def profile_created(self) -> bool:
        return bool(self.provisioning and self.provisioning.profile_created)

    @property
    def message(self) -> str:
        if self.action == ApprovalAction.REJECTED:
            return "Registration rejected"
        if self.action == ApprovalAction.APPROVED_WITH_COMPANY:
            return f"Registration approved and assigned to {self.company.name}"
        return "Registration approved as regular user"


class ApprovalDecisionEngine:
    """Applies administrator decisions to pending registration requests.

    Attributes:
        _db: Async database session; the engine commits it.
        _provisioner: Identity provisioner sharing the same session.
        _audit: Audit trail sharing the same session.
        _bus: Change bus notified after commit.
        _notifier: Post-approval notifier.
        _settings: Workflow settings.
    """

    def __init__(
        self,
        db: AsyncSession,
        provisioner: IdentityProvisioner,
        audit: AuditTrail,
        bus: ChangeNotificationBus | None = None,
        notifier: ApprovalNotifier | None = None,
        settings: RegistrationSettings | None = None,
    ) -> None:
        self._db = db
        self._provisioner = provisioner
        self._audit = audit
        self._bus = bus
        self._notifier = notifier
        self._settings = settings or RegistrationSettings()

    async def decide(
        self,
        registration_id: str,
        decision: Decision,
        acting_admin_id: str,
    ) -> DecisionOutcome:
        """Apply a decision to a pending request.

        Args:
            registration_id: ID of the request.
            decision: Reject, ApproveRegular or ApproveCompany.
            acting_admin_id: ID of the deciding administrator.

        Returns:
            DecisionOutcome for the committed decision.

        Raises:
            UnauthorizedError: If no administrator id is given.
            ValidationError: If the decision is malformed.
            CompanyNotFoundError: If the company does not exist.
            RegistrationNotFoundError: If the request does not exist.
            InvalidStateError: If the request is not pending.
            ConflictError: If a concurrent decision claimed it first.
            AuthProvisioningError: If identity creation failed.
            UserRecordError: If the user row could not be written.
            DecisionRecordError: If the decision could not be committed.
        """
        if not acting_admin_id or not acting_admin_id.strip():
            raise UnauthorizedError()

        if isinstance(decision, ApproveCompany) and not decision.company_id.strip():
            raise ValidationError(
                "A company must be selected to approve with company assignment",
                field="company_id",
            )
        if not isinstance(decision, (Reject, ApproveRegular, ApproveCompany)):
            raise ValidationError(f"Unsupported decision: {decision!r}", field="action")

        request = await self._db.get(RegistrationRequest, registration_id)
        if request is None:
            raise RegistrationNotFoundError(registration_id)
        if not request.is_pending:
            raise InvalidStateError(registration_id, request.status)

        company = None
        if isinstance(decision, ApproveCompany):
            company = await self._db.get(Company, decision.company_id)
            if company is None:
                raise CompanyNotFoundError(decision.company_id)

        action = self._action_for(decision)
        new_status = (
            RegistrationStatus.REJECTED
            if isinstance(decision, Reject)
            else RegistrationStatus.APPROVED
        )
        logger.info(
            "Decision started: registration=%s, action=%s, by=%s",
            registration_id,
            action.value,
            acting_admin_id,
        )

        provisioning: ProvisioningResult | None = None
        try:
            # 1. Claim the request; only one transaction can win
            if not await self._claim(registration_id, new_status):
                raise ConflictError(registration_id)
            set_committed_value(request, "status", new_status.value)

            # 2. Provision approvals
            if not isinstance(decision, Reject):
                provisioning = await self._provisioner.provision(
                    request,
                    company_id=company.id if company else None,
                    approved_by=acting_admin_id,
                )

            # 3. Audit
            log_entry = await self._audit.append(
                registration_id=registration_id,
                approved_by=acting_admin_id,
                action=action,
                user_id=provisioning.user_id if provisioning else None,
                company_id=company.id if company else None,
                notes=decision.notes,
            )

            events = self._change_events(request, provisioning, log_entry)
            await self._db.commit()

        except RegistrationError as e:
            await self._db.rollback()
            logger.warning(
                "Decision failed: registration=%s, action=%s, error=%s",
                registration_id,
                action.value,
                e.message,
            )
            raise
        except SQLAlchemyError as e:
            await self._db.rollback()
            logger.error(
                "Decision could not be recorded: registration=%s, error=%s",
                registration_id,
                str(e),
            )
            if provisioning is not None:
                await self._provisioner.release_identity(provisioning.user_id)
            raise DecisionRecordError("Failed to record the decision") from e

        logger.info(
            "Decision committed: registration=%s, status=%s, action=%s, user=%s",
            registration_id,
            new_status.value,
            action.value,
            provisioning.user_id if provisioning else None,
        )

        if self._bus is not None:
            await self._bus.publish_all(events)

        if provisioning is not None:
            await self._notify_approved(request, provisioning, company)

        return DecisionOutcome(
            registration=request,
            action=action,
            approval_log=log_entry,
            provisioning=provisioning,
            company=company,
            warnings=list(provisioning.warnings) if provisioning else [],
        )

    async def _claim(self, registration_id: str, new_status: RegistrationStatus) -> bool:
        """Move a request out of pending if it is still pending."""
        result = await self._db.execute(
            update(RegistrationRequest)
            .where(
                RegistrationRequest.id == registration_id,
                RegistrationRequest.status == RegistrationStatus.PENDING.value,
            )
            .values(status=new_status.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def _action_for(decision: Decision) -> ApprovalAction:
        match decision:
            case Reject():
                return ApprovalAction.REJECTED
            case ApproveRegular():
                return ApprovalAction.APPROVED_AS_REGULAR
            case ApproveCompany():
                return ApprovalAction.APPROVED_WITH_COMPANY
        raise ValidationError(f"Unsupported decision: {decision!r}", field="action")

    @staticmethod
    def _change_events(
        request: RegistrationRequest,
        provisioning: ProvisioningResult | None,
        log_entry: ApprovalLog,
    ) -> list[ChangeEvent]:
        """Snapshot the rows written by this decision."""
        events = [ChangeEvent.update(Tables.REGISTRATION_REQUESTS, request.to_dict())]
        if provisioning is not None:
            events.append(ChangeEvent.insert(Tables.USERS, provisioning.user.to_dict()))
            if provisioning.profile is not None:
                events.append(
                    ChangeEvent.insert(Tables.USER_PROFILES, provisioning.profile.to_dict())
                )
        events.append(ChangeEvent.insert(Tables.APPROVAL_LOGS, log_entry.to_dict()))
        return events

    async def _notify_approved(
        self,
        request: RegistrationRequest,
        provisioning: ProvisioningResult,
        company: Company | None,
    ) -> None:
        """Send the approval message; failures are only logged."""
        if self._notifier is None or not self._settings.notify_on_approval:
            return

        try:
            await self._notifier.notify_account_approved(
                user_id=provisioning.user_id,
                email=request.email,
                full_name=request.full_name,
                company_name=company.name if company else None,
            )
        except Exception as e:
            logger.warning(
                "Approval notification failed: user=%s, error=%s",
                provisioning.user_id,
                str(e),
            )
