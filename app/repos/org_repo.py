from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime
from typing import Protocol

from app.models.organization import Organization, OrgStatus, PlanType


class OrgRepo(Protocol):
    async def get_by_id(self, org_id: int) -> Organization | None: ...
    async def list_all(self, status: OrgStatus | None = None) -> list[Organization]: ...
    async def list_by_ids(self, org_ids: list[int]) -> list[Organization]: ...
    async def add(
        self,
        *,
        name: str,
        registration_number: str | None = None,
        status: OrgStatus = OrgStatus.PENDING,
        user_id: int | None = None,
    ) -> Organization: ...
    async def update_status(
        self, org_id: int, status: OrgStatus
    ) -> Organization | None: ...
    async def update_plan(
        self, org_id: int, plan_type: PlanType
    ) -> Organization | None: ...


class InMemoryOrgRepo:
    def __init__(self) -> None:
        self._by_id: dict[int, Organization] = {}
        self._next_id = 1

    async def get_by_id(self, org_id: int) -> Organization | None:
        return self._by_id.get(org_id)

    async def list_all(self, status: OrgStatus | None = None) -> list[Organization]:
        orgs = list(self._by_id.values())
        if status is not None:
            orgs = [o for o in orgs if o.status == status]
        return orgs

    async def list_by_ids(self, org_ids: list[int]) -> list[Organization]:
        return [self._by_id[i] for i in org_ids if i in self._by_id]

    async def add(
        self,
        *,
        name: str,
        registration_number: str | None = None,
        status: OrgStatus = OrgStatus.PENDING,
        user_id: int | None = None,
    ) -> Organization:
        org = Organization(
            id=self._next_id,
            name=name,
            registration_number=registration_number,
            status=status,
            user_id=user_id,
            created_at=datetime.now(UTC),
        )
        self._by_id[org.id] = org
        self._next_id += 1
        return org

    async def update_status(self, org_id: int, status: OrgStatus) -> Organization | None:
        return self._update(org_id, status=status)

    async def update_plan(self, org_id: int, plan_type: PlanType) -> Organization | None:
        return self._update(org_id, plan_type=plan_type)

    def _update(self, org_id: int, **changes: object) -> Organization | None:
        existing = self._by_id.get(org_id)
        if existing is None:
            return None
        updated = replace(existing, updated_at=datetime.now(UTC), **changes)  # type: ignore[arg-type]
        self._by_id[org_id] = updated
        return updated

    # --- unit-of-work support ---

    def snapshot(self) -> tuple[dict[int, Organization], int]:
        return dict(self._by_id), self._next_id

    def restore(self, state: tuple[dict[int, Organization], int]) -> None:
        self._by_id, self._next_id = dict(state[0]), state[1]

    def clear(self) -> None:
        self._by_id.clear()
        self._next_id = 1
