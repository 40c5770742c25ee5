from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime


class ApplicationStatus(str, enum.Enum):
    """Review state of an onboarding application.

    PENDING is the only non-terminal state: an application is reviewed
    exactly once and never re-opened.
    """

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


@dataclass(frozen=True, slots=True)
class NewApplication:
    """Submission payload for an onboarding application."""

    org_name: str
    registration_number: str | None = None
    registration_doc_url: str | None = None
    contact_name: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    description: str | None = None


@dataclass(frozen=True, slots=True)
class OrgApplication:
    id: int
    user_id: int
    org_name: str
    status: ApplicationStatus
    created_at: datetime
    registration_number: str | None = None
    registration_doc_url: str | None = None
    contact_name: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    description: str | None = None
    rejected_reason: str | None = None  # set only when REJECTED
    reviewed_at: datetime | None = None  # set once the application leaves PENDING

    def is_pending(self) -> bool:
        return self.status == ApplicationStatus.PENDING
