from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime


class OrgStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    SUSPENDED = "SUSPENDED"


class PlanType(str, enum.Enum):
    FREE = "FREE"
    PLUS = "PLUS"


class OrgRole(str, enum.Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    VIEWER = "VIEWER"


@dataclass(frozen=True, slots=True)
class Organization:
    id: int
    name: str
    created_at: datetime
    registration_number: str | None = None
    description: str | None = None
    logo_url: str | None = None
    wallet_address: str | None = None
    contact_info: str | None = None
    is_verified: bool = False
    plan_type: PlanType = PlanType.FREE
    status: OrgStatus = OrgStatus.PENDING
    user_id: int | None = None  # owning user, if any
    updated_at: datetime | None = None

    def is_plus_plan(self) -> bool:
        return self.plan_type == PlanType.PLUS


@dataclass(frozen=True, slots=True)
class OrgMembership:
    id: int
    org_id: int
    user_id: int
    role: OrgRole
    joined_at: datetime
