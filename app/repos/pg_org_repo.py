"""PostgreSQL implementation of OrgRepo."""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.tables import OrganizationRow
from app.models.organization import Organization, OrgStatus, PlanType


class PgOrgRepo:
    """Satisfies the OrgRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, org_id: int) -> Organization | None:
        row = await self._session.get(OrganizationRow, org_id)
        if row is None:
            return None
        return _row_to_org(row)

    async def list_all(self, status: OrgStatus | None = None) -> list[Organization]:
        stmt = select(OrganizationRow).order_by(OrganizationRow.id)
        if status is not None:
            stmt = stmt.where(OrganizationRow.status == status)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_org(r) for r in rows]

    async def list_by_ids(self, org_ids: list[int]) -> list[Organization]:
        if not org_ids:
            return []
        stmt = select(OrganizationRow).where(OrganizationRow.id.in_(org_ids))
        rows = {r.id: r for r in (await self._session.execute(stmt)).scalars().all()}
        # preserve caller order
        return [_row_to_org(rows[i]) for i in org_ids if i in rows]

    async def add(
        self,
        *,
        name: str,
        registration_number: str | None = None,
        status: OrgStatus = OrgStatus.PENDING,
        user_id: int | None = None,
    ) -> Organization:
        row = OrganizationRow(
            name=name,
            registration_number=registration_number,
            status=status,
            user_id=user_id,
            description=None,
            logo_url=None,
            wallet_address=None,
            contact_info=None,
            is_verified=False,
            plan_type=PlanType.FREE,
            updated_at=None,
        )
        self._session.add(row)
        await self._session.flush()
        return _row_to_org(row)

    async def update_status(self, org_id: int, status: OrgStatus) -> Organization | None:
        return await self._update(org_id, status=status)

    async def update_plan(self, org_id: int, plan_type: PlanType) -> Organization | None:
        return await self._update(org_id, plan_type=plan_type)

    async def _update(self, org_id: int, **values: object) -> Organization | None:
        stmt = update(OrganizationRow).where(OrganizationRow.id == org_id).values(**values)
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            return None
        row = await self._session.get(OrganizationRow, org_id, populate_existing=True)
        return _row_to_org(row) if row is not None else None


def _row_to_org(row: OrganizationRow) -> Organization:
    return Organization(
        id=row.id,
        name=row.name,
        created_at=row.created_at,
        registration_number=row.registration_number,
        description=row.description,
        logo_url=row.logo_url,
        wallet_address=row.wallet_address,
        contact_info=row.contact_info,
        is_verified=row.is_verified,
        plan_type=row.plan_type,
        status=row.status,
        user_id=row.user_id,
        updated_at=row.updated_at,
    )
