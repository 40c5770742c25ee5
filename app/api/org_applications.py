"""Organization onboarding applications, applicant side.

POST /v1/org-applications         submit (one under review at a time)
GET  /v1/org-applications/my      the caller's applications, newest first
GET  /v1/org-applications/{id}    detail (applicant or platform admin)
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, field_validator

from app.api.access import check_owner_or_admin
from app.api.dependencies import require_user, subject_id
from app.api.register import EMAIL_RE
from app.models.org_application import (
    ApplicationStatus,
    NewApplication,
    OrgApplication,
)
from app.models.principal import Principal
from app.services.org_application_service import org_application_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/org-applications", tags=["org-applications"])


# --- Pydantic schemas ---


class ApplicationIn(BaseModel):
    org_name: str = Field(max_length=255)
    registration_number: str | None = Field(default=None, max_length=100)
    registration_doc_url: str | None = Field(default=None, max_length=255)
    contact_name: str | None = Field(default=None, max_length=100)
    contact_phone: str | None = Field(default=None, max_length=20)
    contact_email: str | None = Field(default=None, max_length=255)
    description: str | None = None

    @field_validator("contact_email")
    @classmethod
    def _email_shape(cls, v: str | None) -> str | None:
        if v is not None and not EMAIL_RE.match(v.strip()):
            raise ValueError("contact_email must be a valid email address")
        return v.strip() if v is not None else None


class ApplicationOut(BaseModel):
    id: int
    user_id: int
    org_name: str
    registration_number: str | None
    registration_doc_url: str | None
    contact_name: str | None
    contact_phone: str | None
    contact_email: str | None
    description: str | None
    status: ApplicationStatus
    rejected_reason: str | None
    reviewed_at: datetime | None
    created_at: datetime


def application_out(a: OrgApplication) -> ApplicationOut:
    return ApplicationOut(
        id=a.id,
        user_id=a.user_id,
        org_name=a.org_name,
        registration_number=a.registration_number,
        registration_doc_url=a.registration_doc_url,
        contact_name=a.contact_name,
        contact_phone=a.contact_phone,
        contact_email=a.contact_email,
        description=a.description,
        status=a.status,
        rejected_reason=a.rejected_reason,
        reviewed_at=a.reviewed_at,
        created_at=a.created_at,
    )


# --- Endpoints ---


@router.post("", response_model=ApplicationOut, status_code=status.HTTP_201_CREATED)
async def submit_application(
    body: ApplicationIn,
    principal: Annotated[Principal, Depends(require_user)],
) -> ApplicationOut:
    application = await org_application_service.submit(
        subject_id(principal),
        NewApplication(**body.model_dump()),
    )
    return application_out(application)


@router.get("/my", response_model=list[ApplicationOut])
async def list_my_applications(
    principal: Annotated[Principal, Depends(require_user)],
) -> list[ApplicationOut]:
    apps = await org_application_service.list_user_applications(subject_id(principal))
    return [application_out(a) for a in apps]


@router.get("/{application_id}", response_model=ApplicationOut)
async def get_application(
    application_id: int,
    principal: Annotated[Principal, Depends(require_user)],
) -> ApplicationOut:
    application = await org_application_service.get_application(application_id)
    check_owner_or_admin(principal, application.user_id)
    return application_out(application)
