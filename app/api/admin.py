"""Platform-admin review console.

Applications: list (optionally by status), detail, approve, reject.
Organizations: list (optionally by status), approve, suspend.
Users: activate, deactivate.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.api.dependencies import require_role
from app.api.org_applications import ApplicationOut, application_out
from app.api.orgs import OrgOut, org_out
from app.db.unit_of_work import uow_factory
from app.models.org_application import ApplicationStatus
from app.models.organization import OrgStatus
from app.models.principal import Principal
from app.models.user import User
from app.services import auth_service
from app.services.org_application_service import org_application_service
from app.services.organization_service import organization_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/admin", tags=["admin"])

AdminPrincipal = Annotated[Principal, Depends(require_role("admin"))]


class ApprovalOut(BaseModel):
    application: ApplicationOut
    organization: OrgOut


class RejectIn(BaseModel):
    rejected_reason: str


# --- Applications ---


@router.get("/applications", response_model=list[ApplicationOut])
async def admin_list_applications(
    principal: AdminPrincipal,
    status: ApplicationStatus | None = None,
) -> list[ApplicationOut]:
    apps = await org_application_service.list_applications(status)
    return [application_out(a) for a in apps]


@router.get("/applications/{application_id}", response_model=ApplicationOut)
async def admin_get_application(
    application_id: int,
    principal: AdminPrincipal,
) -> ApplicationOut:
    return application_out(await org_application_service.get_application(application_id))


@router.patch("/applications/{application_id}/approve", response_model=ApprovalOut)
async def admin_approve_application(
    application_id: int,
    principal: AdminPrincipal,
) -> ApprovalOut:
    logger.info("Approval requested application=%s by admin=%s", application_id, principal.user_id)
    result = await org_application_service.approve(application_id)
    return ApprovalOut(
        application=application_out(result.application),
        organization=org_out(result.organization),
    )


@router.patch("/applications/{application_id}/reject", response_model=ApplicationOut)
async def admin_reject_application(
    application_id: int,
    body: RejectIn,
    principal: AdminPrincipal,
) -> ApplicationOut:
    logger.info("Rejection requested application=%s by admin=%s", application_id, principal.user_id)
    application = await org_application_service.reject(application_id, body.rejected_reason)
    return application_out(application)


# --- Organizations ---


@router.get("/organizations", response_model=list[OrgOut])
async def admin_list_organizations(
    principal: AdminPrincipal,
    status: OrgStatus | None = None,
) -> list[OrgOut]:
    orgs = await organization_service.list_organizations(status)
    return [org_out(o) for o in orgs]


@router.patch("/organizations/{org_id}/approve", response_model=OrgOut)
async def admin_approve_organization(org_id: int, principal: AdminPrincipal) -> OrgOut:
    return org_out(await organization_service.set_status(org_id, OrgStatus.APPROVED))


@router.patch("/organizations/{org_id}/suspend", response_model=OrgOut)
async def admin_suspend_organization(org_id: int, principal: AdminPrincipal) -> OrgOut:
    return org_out(await organization_service.set_status(org_id, OrgStatus.SUSPENDED))


# --- Users ---


class AdminUserOut(BaseModel):
    id: int
    email: str
    name: str
    roles: list[str]
    is_active: bool


def _user_out(user: User) -> AdminUserOut:
    return AdminUserOut(
        id=user.id,
        email=user.email,
        name=user.name,
        roles=list(user.roles),
        is_active=user.is_active,
    )


async def _set_active(user_id: int, is_active: bool) -> AdminUserOut:
    async with uow_factory() as uow:
        user = await auth_service.set_user_active(uow.users, user_id, is_active)
    return _user_out(user)


@router.patch("/users/{user_id}/deactivate", response_model=AdminUserOut)
async def admin_deactivate_user(user_id: int, principal: AdminPrincipal) -> AdminUserOut:
    logger.info("Deactivation requested user=%s by admin=%s", user_id, principal.user_id)
    return await _set_active(user_id, False)


@router.patch("/users/{user_id}/activate", response_model=AdminUserOut)
async def admin_activate_user(user_id: int, principal: AdminPrincipal) -> AdminUserOut:
    return await _set_active(user_id, True)
