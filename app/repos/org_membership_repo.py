from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol

from app.models.organization import OrgMembership, OrgRole


class OrgMembershipRepo(Protocol):
    async def get(self, org_id: int, user_id: int) -> OrgMembership | None: ...
    async def add(self, *, org_id: int, user_id: int, role: OrgRole) -> OrgMembership: ...
    async def list_by_org(self, org_id: int) -> list[OrgMembership]: ...
    async def list_by_user(self, user_id: int) -> list[OrgMembership]: ...


class InMemoryOrgMembershipRepo:
    def __init__(self) -> None:
        self._store: dict[tuple[int, int], OrgMembership] = {}
        self._next_id = 1

    async def get(self, org_id: int, user_id: int) -> OrgMembership | None:
        return self._store.get((org_id, user_id))

    async def add(self, *, org_id: int, user_id: int, role: OrgRole) -> OrgMembership:
        key = (org_id, user_id)
        if key in self._store:
            raise ValueError("membership already exists")
        membership = OrgMembership(
            id=self._next_id,
            org_id=org_id,
            user_id=user_id,
            role=role,
            joined_at=datetime.now(UTC),
        )
        self._store[key] = membership
        self._next_id += 1
        return membership

    async def list_by_org(self, org_id: int) -> list[OrgMembership]:
        return [m for m in self._store.values() if m.org_id == org_id]

    async def list_by_user(self, user_id: int) -> list[OrgMembership]:
        members = [m for m in self._store.values() if m.user_id == user_id]
        return sorted(members, key=lambda m: (m.joined_at, m.id))

    # --- unit-of-work support ---

    def snapshot(self) -> tuple[dict[tuple[int, int], OrgMembership], int]:
        return dict(self._store), self._next_id

    def restore(self, state: tuple[dict[tuple[int, int], OrgMembership], int]) -> None:
        self._store, self._next_id = dict(state[0]), state[1]

    def clear(self) -> None:
        self._store.clear()
        self._next_id = 1
