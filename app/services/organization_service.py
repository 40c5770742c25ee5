from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

from app.db.unit_of_work import AbstractUnitOfWork, uow_factory
from app.models.organization import (
    Organization,
    OrgMembership,
    OrgRole,
    OrgStatus,
    PlanType,
)
from app.services.errors import InvalidInputError, NotFoundError, PlanRequiredError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MemberOrganization:
    """An organization as seen by one of its members."""

    organization: Organization
    role: OrgRole


@dataclass(frozen=True, slots=True)
class OrgDashboard:
    organization: Organization
    member_count: int
    members_by_role: dict[OrgRole, int]


@dataclass(frozen=True, slots=True)
class MembershipReport:
    org_id: int
    start_date: date | None
    end_date: date | None
    total_members: int
    members_by_role: dict[OrgRole, int]
    joined_in_period: int
    joined_by_role: dict[OrgRole, int]


def _count_roles(members: list[OrgMembership]) -> dict[OrgRole, int]:
    counts = dict.fromkeys(OrgRole, 0)
    for m in members:
        counts[m.role] += 1
    return counts


def _not_found(org_id: int) -> NotFoundError:
    return NotFoundError(f"organization {org_id} not found")


class OrganizationService:
    def __init__(self, uow_factory: Callable[[], AbstractUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def get_organization(self, org_id: int) -> Organization:
        async with self._uow_factory() as uow:
            org = await uow.organizations.get_by_id(org_id)
        if org is None:
            raise _not_found(org_id)
        return org

    async def list_organizations(
        self, status: OrgStatus | None = None
    ) -> list[Organization]:
        async with self._uow_factory() as uow:
            return await uow.organizations.list_all(status)

    async def list_user_organizations(self, user_id: int) -> list[MemberOrganization]:
        """Organizations ``user_id`` belongs to, oldest membership first."""
        async with self._uow_factory() as uow:
            memberships = await uow.memberships.list_by_user(user_id)
            orgs = await uow.organizations.list_by_ids([m.org_id for m in memberships])
        roles = {m.org_id: m.role for m in memberships}
        return [MemberOrganization(organization=o, role=roles[o.id]) for o in orgs]

    async def list_members(self, org_id: int) -> list[OrgMembership]:
        async with self._uow_factory() as uow:
            if await uow.organizations.get_by_id(org_id) is None:
                raise _not_found(org_id)
            return await uow.memberships.list_by_org(org_id)

    async def get_dashboard(self, org_id: int) -> OrgDashboard:
        async with self._uow_factory() as uow:
            org = await uow.organizations.get_by_id(org_id)
            if org is None:
                raise _not_found(org_id)
            members = await uow.memberships.list_by_org(org_id)
        return OrgDashboard(
            organization=org,
            member_count=len(members),
            members_by_role=_count_roles(members),
        )

    async def membership_report(
        self,
        org_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> MembershipReport:
        """Membership figures for ``org_id``; Plus plan only.

        ``start_date`` and ``end_date`` are inclusive bounds on the day a
        member joined.  Either may be omitted to leave that side open.
        """
        if start_date and end_date and start_date > end_date:
            raise InvalidInputError("start_date must not be after end_date")

        async with self._uow_factory() as uow:
            org = await uow.organizations.get_by_id(org_id)
            if org is None:
                raise _not_found(org_id)
            if not org.is_plus_plan():
                raise PlanRequiredError("Plus plan required")
            members = await uow.memberships.list_by_org(org_id)

        joined = [
            m
            for m in members
            if (start_date is None or m.joined_at.date() >= start_date)
            and (end_date is None or m.joined_at.date() <= end_date)
        ]
        logger.info(
            "Membership report built org=%s joined=%d",
            org_id,
            len(joined),
            extra={"org_id": org_id},
        )
        return MembershipReport(
            org_id=org_id,
            start_date=start_date,
            end_date=end_date,
            total_members=len(members),
            members_by_role=_count_roles(members),
            joined_in_period=len(joined),
            joined_by_role=_count_roles(joined),
        )

    async def set_status(self, org_id: int, status: OrgStatus) -> Organization:
        async with self._uow_factory() as uow:
            org = await uow.organizations.update_status(org_id, status)
            if org is None:
                raise _not_found(org_id)
        logger.info(
            "Organization status changed org=%s status=%s",
            org_id,
            status.value,
            extra={"org_id": org_id},
        )
        return org

    async def change_plan(self, org_id: int, plan_type: PlanType) -> Organization:
        async with self._uow_factory() as uow:
            org = await uow.organizations.update_plan(org_id, plan_type)
            if org is None:
                raise _not_found(org_id)
        logger.info(
            "Organization plan changed org=%s plan=%s",
            org_id,
            plan_type.value,
            extra={"org_id": org_id},
        )
        return org


organization_service = OrganizationService(uow_factory)
