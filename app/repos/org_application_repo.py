from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime
from typing import Protocol

from app.models.org_application import (
    ApplicationStatus,
    NewApplication,
    OrgApplication,
)


class OrgApplicationRepo(Protocol):
    async def get_by_id(self, application_id: int) -> OrgApplication | None: ...
    async def list_by_user(self, user_id: int) -> list[OrgApplication]: ...
    async def list_all(
        self, status: ApplicationStatus | None = None
    ) -> list[OrgApplication]: ...
    async def add(self, user_id: int, data: NewApplication) -> OrgApplication: ...
    async def update_status(
        self,
        application_id: int,
        *,
        status: ApplicationStatus,
        reviewed_at: datetime,
        rejected_reason: str | None = None,
        expected_status: ApplicationStatus = ApplicationStatus.PENDING,
    ) -> OrgApplication | None: ...


def _newest_first(apps: list[OrgApplication]) -> list[OrgApplication]:
    return sorted(apps, key=lambda a: (a.created_at, a.id), reverse=True)


class InMemoryOrgApplicationRepo:
    def __init__(self) -> None:
        self._by_id: dict[int, OrgApplication] = {}
        self._next_id = 1

    async def get_by_id(self, application_id: int) -> OrgApplication | None:
        return self._by_id.get(application_id)

    async def list_by_user(self, user_id: int) -> list[OrgApplication]:
        return _newest_first([a for a in self._by_id.values() if a.user_id == user_id])

    async def list_all(
        self, status: ApplicationStatus | None = None
    ) -> list[OrgApplication]:
        apps = list(self._by_id.values())
        if status is not None:
            apps = [a for a in apps if a.status == status]
        return _newest_first(apps)

    async def add(self, user_id: int, data: NewApplication) -> OrgApplication:
        # Mirrors the partial unique index on (user_id) WHERE status = 'PENDING'.
        if any(a.user_id == user_id and a.is_pending() for a in self._by_id.values()):
            raise ValueError("pending application already exists")

        app = OrgApplication(
            id=self._next_id,
            user_id=user_id,
            org_name=data.org_name,
            registration_number=data.registration_number,
            registration_doc_url=data.registration_doc_url,
            contact_name=data.contact_name,
            contact_phone=data.contact_phone,
            contact_email=data.contact_email,
            description=data.description,
            status=ApplicationStatus.PENDING,
            created_at=datetime.now(UTC),
        )
        self._by_id[app.id] = app
        self._next_id += 1
        return app

    async def update_status(
        self,
        application_id: int,
        *,
        status: ApplicationStatus,
        reviewed_at: datetime,
        rejected_reason: str | None = None,
        expected_status: ApplicationStatus = ApplicationStatus.PENDING,
    ) -> OrgApplication | None:
        existing = self._by_id.get(application_id)
        if existing is None or existing.status != expected_status:
            return None
        updated = replace(
            existing,
            status=status,
            reviewed_at=reviewed_at,
            rejected_reason=rejected_reason,
        )
        self._by_id[application_id] = updated
        return updated

    # --- unit-of-work support ---

    def snapshot(self) -> tuple[dict[int, OrgApplication], int]:
        return dict(self._by_id), self._next_id

    def restore(self, state: tuple[dict[int, OrgApplication], int]) -> None:
        self._by_id, self._next_id = dict(state[0]), state[1]

    def clear(self) -> None:
        self._by_id.clear()
        self._next_id = 1
