"""PostgreSQL implementation of OrgMembershipRepo."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.tables import OrgMemberRow
from app.models.organization import OrgMembership, OrgRole


class PgOrgMembershipRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, org_id: int, user_id: int) -> OrgMembership | None:
        stmt = select(OrgMemberRow).where(
            OrgMemberRow.org_id == org_id, OrgMemberRow.user_id == user_id
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_membership(row)

    async def add(self, *, org_id: int, user_id: int, role: OrgRole) -> OrgMembership:
        row = OrgMemberRow(org_id=org_id, user_id=user_id, role=role)
        self._session.add(row)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            raise ValueError("membership already exists") from exc
        return _row_to_membership(row)

    async def list_by_org(self, org_id: int) -> list[OrgMembership]:
        stmt = (
            select(OrgMemberRow)
            .where(OrgMemberRow.org_id == org_id)
            .order_by(OrgMemberRow.joined_at, OrgMemberRow.id)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_membership(r) for r in rows]

    async def list_by_user(self, user_id: int) -> list[OrgMembership]:
        stmt = (
            select(OrgMemberRow)
            .where(OrgMemberRow.user_id == user_id)
            .order_by(OrgMemberRow.joined_at, OrgMemberRow.id)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_membership(r) for r in rows]


def _row_to_membership(row: OrgMemberRow) -> OrgMembership:
    return OrgMembership(
        id=row.id,
        org_id=row.org_id,
        user_id=row.user_id,
        role=row.role,
        joined_at=row.joined_at,
    )
