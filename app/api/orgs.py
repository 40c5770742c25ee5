"""Organization member pages.

Dashboard, membership reports (Plus plan), members and plan tier.

Org context is resolved from the URL path and validated against the
caller's membership at request time.  Platform admins act as org ADMIN.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from app.api.dependencies import (
    require_any_org_role,
    require_user,
    resolve_org_principal,
    subject_id,
)
from app.db.unit_of_work import uow_factory
from app.models.organization import Organization, OrgRole, OrgStatus, PlanType
from app.models.principal import Principal
from app.services.organization_service import organization_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/orgs", tags=["orgs"])

# --- Dependency instances wired to the configured backend ---
_resolve_org = resolve_org_principal(uow_factory)
_require_admin_or_manager = require_any_org_role(
    {OrgRole.ADMIN, OrgRole.MANAGER}, uow_factory
)
_require_admin = require_any_org_role({OrgRole.ADMIN}, uow_factory)


def _org_id(principal: Principal) -> int:
    """Extract org_id from an org-scoped Principal, or 500 if missing.

    The org-scoped dependencies guarantee org_id is set before any
    endpoint body runs.
    """
    if principal.org_id is None:
        raise HTTPException(status_code=500, detail="org context not resolved")
    return principal.org_id


# --- Pydantic schemas ---


class OrgOut(BaseModel):
    id: int
    name: str
    registration_number: str | None
    description: str | None
    logo_url: str | None
    contact_info: str | None
    is_verified: bool
    plan_type: PlanType
    status: OrgStatus
    created_at: datetime
    updated_at: datetime | None


class MyOrgOut(BaseModel):
    organization: OrgOut
    role: OrgRole


class MemberOut(BaseModel):
    user_id: int
    role: OrgRole
    joined_at: datetime


class PlanOut(BaseModel):
    plan_type: PlanType
    status: OrgStatus


class DashboardOut(BaseModel):
    organization: OrgOut
    plan_type: PlanType
    role: OrgRole
    member_count: int
    members_by_role: dict[str, int]


class ReportOut(BaseModel):
    org_id: int
    start_date: date | None
    end_date: date | None
    total_members: int
    members_by_role: dict[str, int]
    joined_in_period: int
    joined_by_role: dict[str, int]


def org_out(org: Organization) -> OrgOut:
    return OrgOut(
        id=org.id,
        name=org.name,
        registration_number=org.registration_number,
        description=org.description,
        logo_url=org.logo_url,
        contact_info=org.contact_info,
        is_verified=org.is_verified,
        plan_type=org.plan_type,
        status=org.status,
        created_at=org.created_at,
        updated_at=org.updated_at,
    )


def _role_counts(counts: dict[OrgRole, int]) -> dict[str, int]:
    return {role.value: n for role, n in counts.items()}


# --- Endpoints ---


@router.get("", response_model=list[MyOrgOut])
async def list_my_orgs(
    principal: Annotated[Principal, Depends(require_user)],
) -> list[MyOrgOut]:
    """Organizations the caller belongs to, with the caller's role in each."""
    entries = await organization_service.list_user_organizations(subject_id(principal))
    return [MyOrgOut(organization=org_out(e.organization), role=e.role) for e in entries]


@router.get("/{org_id}", response_model=OrgOut)
async def get_org(
    principal: Annotated[Principal, Depends(_resolve_org)],
) -> OrgOut:
    """Get org details. Any member can view."""
    return org_out(await organization_service.get_organization(_org_id(principal)))


@router.get("/{org_id}/members", response_model=list[MemberOut])
async def list_members(
    principal: Annotated[Principal, Depends(_require_admin_or_manager)],
) -> list[MemberOut]:
    members = await organization_service.list_members(_org_id(principal))
    return [MemberOut(user_id=m.user_id, role=m.role, joined_at=m.joined_at) for m in members]


@router.get("/{org_id}/plan", response_model=PlanOut)
async def get_plan(
    principal: Annotated[Principal, Depends(_require_admin)],
) -> PlanOut:
    org = await organization_service.get_organization(_org_id(principal))
    return PlanOut(plan_type=org.plan_type, status=org.status)


@router.post("/{org_id}/plan/upgrade", response_model=OrgOut)
async def upgrade_plan(
    principal: Annotated[Principal, Depends(_require_admin)],
) -> OrgOut:
    org = await organization_service.change_plan(_org_id(principal), PlanType.PLUS)
    return org_out(org)


@router.post("/{org_id}/plan/cancel", response_model=OrgOut)
async def cancel_plan(
    principal: Annotated[Principal, Depends(_require_admin)],
) -> OrgOut:
    org = await organization_service.change_plan(_org_id(principal), PlanType.FREE)
    return org_out(org)


@router.get("/{org_id}/dashboard", response_model=DashboardOut)
async def get_dashboard(
    principal: Annotated[Principal, Depends(_require_admin_or_manager)],
) -> DashboardOut:
    dashboard = await organization_service.get_dashboard(_org_id(principal))
    return DashboardOut(
        organization=org_out(dashboard.organization),
        plan_type=dashboard.organization.plan_type,
        role=principal.org_role,
        member_count=dashboard.member_count,
        members_by_role=_role_counts(dashboard.members_by_role),
    )


@router.get("/{org_id}/reports", response_model=ReportOut)
async def get_reports(
    principal: Annotated[Principal, Depends(_require_admin)],
    start_date: date | None = None,
    end_date: date | None = None,
) -> ReportOut:
    """Membership report for the date range. Requires the Plus plan."""
    report = await organization_service.membership_report(
        _org_id(principal), start_date, end_date
    )
    return ReportOut(
        org_id=report.org_id,
        start_date=report.start_date,
        end_date=report.end_date,
        total_members=report.total_members,
        members_by_role=_role_counts(report.members_by_role),
        joined_in_period=report.joined_in_period,
        joined_by_role=_role_counts(report.joined_by_role),
    )
