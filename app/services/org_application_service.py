"""Organization onboarding workflow.

An application moves PENDING -> APPROVED or PENDING -> REJECTED exactly
once.  Approval creates the organization and its first ADMIN membership
in the same unit of work that marks the application APPROVED, so a reader
never sees one without the others.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, datetime

from app.core.metrics import APPLICATION_DECISIONS, APPLICATION_SUBMISSIONS
from app.db.unit_of_work import AbstractUnitOfWork, uow_factory
from app.models.org_application import (
    ApplicationStatus,
    NewApplication,
    OrgApplication,
)
from app.models.organization import Organization, OrgRole, OrgStatus
from app.services.errors import (
    ConflictError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

UnitOfWorkFactory = Callable[[], AbstractUnitOfWork]

_UNDER_REVIEW = "an application is already under review"


@dataclass(frozen=True, slots=True)
class ApprovalResult:
    application: OrgApplication
    organization: Organization


def _decided(decision: str) -> Callable[[], None]:
    return APPLICATION_DECISIONS.labels(decision=decision).inc


class OrgApplicationService:
    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def submit(self, user_id: int, data: NewApplication) -> OrgApplication:
        """Create a PENDING application for ``user_id``.

        Raises InvalidInputError for a blank org_name and ConflictError
        when the user already has an application under review.
        """
        org_name = (data.org_name or "").strip()
        if not org_name:
            logger.warning("Rejected application with blank org_name user=%s", user_id)
            raise InvalidInputError("org_name must be non-empty")
        data = replace(data, org_name=org_name)

        async with self._uow_factory() as uow:
            existing = await uow.applications.list_by_user(user_id)
            if any(a.is_pending() for a in existing):
                logger.warning("Rejected duplicate pending application user=%s", user_id)
                raise ConflictError(_UNDER_REVIEW)

            try:
                application = await uow.applications.add(user_id, data)
            except ValueError:
                # a concurrent submission got in between the check and the insert
                logger.warning("Pending-application constraint hit user=%s", user_id)
                raise ConflictError(_UNDER_REVIEW) from None

            uow.add_post_commit_hook(APPLICATION_SUBMISSIONS.inc)

        logger.info(
            "Application submitted id=%s user=%s org_name=%s",
            application.id,
            user_id,
            application.org_name,
            extra={"application_id": application.id},
        )
        return application

    async def approve(self, application_id: int) -> ApprovalResult:
        """Approve a PENDING application.

        Organization insert, ADMIN membership insert and the application
        status change commit together or not at all.  Store errors
        propagate unchanged after rollback.
        """
        async with self._uow_factory() as uow:
            application = await uow.applications.get_by_id(application_id)
            if application is None:
                logger.warning("Approve failed: application=%s not found", application_id)
                raise NotFoundError(f"application {application_id} not found")
            if not application.is_pending():
                logger.warning(
                    "Approve refused: application=%s is %s",
                    application_id,
                    application.status.value,
                )
                raise InvalidStateError("only PENDING applications may be approved")

            organization = await uow.organizations.add(
                name=application.org_name,
                registration_number=application.registration_number,
                status=OrgStatus.APPROVED,
                user_id=application.user_id,
            )
            await uow.memberships.add(
                org_id=organization.id,
                user_id=application.user_id,
                role=OrgRole.ADMIN,
            )
            approved = await uow.applications.update_status(
                application_id,
                status=ApplicationStatus.APPROVED,
                reviewed_at=datetime.now(UTC),
                expected_status=ApplicationStatus.PENDING,
            )
            if approved is None:
                logger.warning(
                    "Approve lost race: application=%s already reviewed", application_id
                )
                raise InvalidStateError("only PENDING applications may be approved")

            uow.add_post_commit_hook(_decided("approved"))

        logger.info(
            "Application approved id=%s org=%s admin=%s",
            application_id,
            organization.id,
            approved.user_id,
            extra={"application_id": application_id, "org_id": organization.id},
        )
        return ApprovalResult(application=approved, organization=organization)

    async def reject(self, application_id: int, rejected_reason: str) -> OrgApplication:
        async with self._uow_factory() as uow:
            application = await uow.applications.get_by_id(application_id)
            if application is None:
                logger.warning("Reject failed: application=%s not found", application_id)
                raise NotFoundError(f"application {application_id} not found")
            if not application.is_pending():
                logger.warning(
                    "Reject refused: application=%s is %s",
                    application_id,
                    application.status.value,
                )
                raise InvalidStateError("only PENDING applications may be rejected")

            reason = (rejected_reason or "").strip()
            if not reason:
                raise InvalidInputError("rejected_reason must be non-empty")

            rejected = await uow.applications.update_status(
                application_id,
                status=ApplicationStatus.REJECTED,
                reviewed_at=datetime.now(UTC),
                rejected_reason=reason,
                expected_status=ApplicationStatus.PENDING,
            )
            if rejected is None:
                raise InvalidStateError("only PENDING applications may be rejected")

            uow.add_post_commit_hook(_decided("rejected"))

        logger.info(
            "Application rejected id=%s",
            application_id,
            extra={"application_id": application_id},
        )
        return rejected

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_applications(
        self, status: ApplicationStatus | None = None
    ) -> list[OrgApplication]:
        async with self._uow_factory() as uow:
            return await uow.applications.list_all(status)

    async def get_application(self, application_id: int) -> OrgApplication:
        async with self._uow_factory() as uow:
            application = await uow.applications.get_by_id(application_id)
        if application is None:
            raise NotFoundError(f"application {application_id} not found")
        return application

    async def list_user_applications(self, user_id: int) -> list[OrgApplication]:
        async with self._uow_factory() as uow:
            return await uow.applications.list_by_user(user_id)


# Module-level instance bound to the configured backend
org_application_service = OrgApplicationService(uow_factory)
