# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Identity provisioning for approved registration requests.

Provisioning turns an approved request into a usable account in three
ordered steps with different failure tolerance:

1. Create the external identity (mandatory). Failure raises
   AuthProvisioningError.
2. Insert the User row keyed by the identity id (mandatory). Failure
   raises UserRecordError. The identity created in step 1 is deleted
   again when compensation is enabled; if that also fails the orphaned
   identity id is logged at error level for follow-up.
3. Insert the UserProfile (best-effort). Failure is logged as a
   ProfileWriteWarning and reported on the result; it never aborts.

Database writes join the caller's transaction and are not committed
here. Step 3 runs inside a SAVEPOINT so a failed profile insert leaves
the outer transaction usable.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import RegistrationSettings
from src.domains.auth.identity import IdentityProvider, IdentityServiceError
from src.domains.registration.errors import (
    AuthProvisioningError,
    ProfileWriteWarning,
    UserRecordError,
)
from src.infrastructure.database.models import (
    ApprovalStatus,
    RegistrationRequest,
    User,
    UserProfile,
    UserRole,
)
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


@dataclass
class ProvisioningResult:
    """Outcome of a successful provisioning run.

    Attributes:
        user_id: ID of the new user, equal to the identity id.
        user: The flushed User row.
        profile: The flushed UserProfile row, or None if step 3 failed.
        warnings: Non-fatal problems encountered.
    """

    user_id: str
    user: User
    profile: UserProfile | None = None
    warnings: list[ProfileWriteWarning] = field(default_factory=list)

    @property
    def profile_created(self) -> bool:
        return self.profile is not None


class IdentityProvisioner:
    """Creates the identity, user and profile for an approved request.

    Attributes:
        _db: Async database session shared with the decision.
        _identity: External identity provider.
        _settings: Workflow settings.
    """

    def __init__(
        self,
        db: AsyncSession,
        identity_provider: IdentityProvider,
        settings: RegistrationSettings | None = None,
    ) -> None:
        self._db = db
        self._identity = identity_provider
        self._settings = settings or RegistrationSettings()

    async def provision(
        self,
        request: RegistrationRequest,
        company_id: str | None,
        approved_by: str,
    ) -> ProvisioningResult:
        """Provision an account for a request.

        Args:
            request: The request being approved.
            company_id: Company to assign, or None for a regular account.
            approved_by: ID of the approving administrator.

        Returns:
            ProvisioningResult once steps 1 and 2 have succeeded.

        Raises:
            AuthProvisioningError: If the identity could not be created.
            UserRecordError: If the user row could not be written.
        """
        registration_id = request.id

        # 1. External identity
        try:
            identity_id = await self._identity.create_identity(
                email=request.email,
                password_hash=request.password_hash,
                email_confirmed=True,
                metadata={
                    "first_name": request.first_name,
                    "last_name": request.last_name,
                    "full_name": request.full_name,
                },
            )
        except IdentityServiceError as e:
            logger.error(
                "Provisioning step identity failed: registration=%s, error=%s",
                registration_id,
                e.message,
            )
            raise AuthProvisioningError(
                f"Failed to create the user identity: {e.message}"
            ) from e
        logger.info(
            "Provisioning step identity done: registration=%s, identity=%s",
            registration_id,
            identity_id,
        )

        # 2. User row
        user = User(
            id=identity_id,
            email=request.email,
            role=UserRole.USER.value,
            company_id=company_id,
            approval_status=ApprovalStatus.APPROVED.value,
            approved_by=approved_by,
            approved_at=utc_now(),
        )
        try:
            self._db.add(user)
            await self._db.flush()
        except SQLAlchemyError as e:
            logger.error(
                "Provisioning step user_record failed: registration=%s, identity=%s, error=%s",
                registration_id,
                identity_id,
                str(e),
            )
            await self.release_identity(identity_id)
            raise UserRecordError(
                "Failed to create the user record",
                identity_id=identity_id,
            ) from e
        logger.info(
            "Provisioning step user_record done: registration=%s, user=%s, company=%s",
            registration_id,
            identity_id,
            company_id,
        )

        result = ProvisioningResult(user_id=identity_id, user=user)

        # 3. Profile, best-effort
        profile = UserProfile(
            user_id=identity_id,
            first_name=request.first_name,
            last_name=request.last_name,
            full_name=request.full_name,
            phone=request.phone,
            bio=request.bio,
            department=request.department,
            position=request.position,
            employee_id=request.employee_id,
            profile_picture_url=None,
        )
        try:
            await self._write_profile(profile)
        except SQLAlchemyError as e:
            warning = ProfileWriteWarning(
                f"Failed to create the user profile: {e}",
                user_id=identity_id,
            )
            logger.warning(
                "ProfileWriteWarning: registration=%s, user=%s, error=%s",
                registration_id,
                identity_id,
                str(e),
            )
            result.warnings.append(warning)
        else:
            result.profile = profile
            logger.info(
                "Provisioning step user_profile done: registration=%s, user=%s",
                registration_id,
                identity_id,
            )

        return result

    async def _write_profile(self, profile: UserProfile) -> None:
        async with self._db.begin_nested():
            self._db.add(profile)

    async def release_identity(self, identity_id: str) -> bool:
        """Delete an identity whose account could not be completed.

        Returns:
            True if the identity was deleted, False if it was left behind.
        """
        if not self._settings.compensate_orphaned_identities:
            logger.error(
                "Orphaned identity left in place (compensation disabled): %s",
                identity_id,
            )
            return False

        try:
            await self._identity.delete_identity(identity_id)
        except IdentityServiceError as e:
            logger.error(
                "Orphaned identity could not be deleted: %s, error=%s",
                identity_id,
                e.message,
            )
            return False

        logger.warning("Orphaned identity deleted: %s", identity_id)
        return True
