"""PostgreSQL implementation of OrgApplicationRepo."""

from __future__ import annotations

import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.tables import PENDING_APPLICATION_INDEX, OrgApplicationRow
from app.models.org_application import (
    ApplicationStatus,
    NewApplication,
    OrgApplication,
)


def _is_pending_violation(exc: IntegrityError) -> bool:
    # PostgreSQL names the index; SQLite only names the column.
    msg = str(exc.orig)
    return PENDING_APPLICATION_INDEX in msg or "org_applications.user_id" in msg


class PgOrgApplicationRepo:
    """Satisfies the OrgApplicationRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, application_id: int) -> OrgApplication | None:
        row = await self._session.get(OrgApplicationRow, application_id)
        if row is None:
            return None
        return _row_to_application(row)

    async def list_by_user(self, user_id: int) -> list[OrgApplication]:
        stmt = (
            select(OrgApplicationRow)
            .where(OrgApplicationRow.user_id == user_id)
            .order_by(OrgApplicationRow.created_at.desc(), OrgApplicationRow.id.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_application(r) for r in rows]

    async def list_all(
        self, status: ApplicationStatus | None = None
    ) -> list[OrgApplication]:
        stmt = select(OrgApplicationRow).order_by(
            OrgApplicationRow.created_at.desc(), OrgApplicationRow.id.desc()
        )
        if status is not None:
            stmt = stmt.where(OrgApplicationRow.status == status)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_application(r) for r in rows]

    async def add(self, user_id: int, data: NewApplication) -> OrgApplication:
        row = OrgApplicationRow(
            user_id=user_id,
            org_name=data.org_name,
            registration_number=data.registration_number,
            registration_doc_url=data.registration_doc_url,
            contact_name=data.contact_name,
            contact_phone=data.contact_phone,
            contact_email=data.contact_email,
            description=data.description,
            status=ApplicationStatus.PENDING,
            rejected_reason=None,
            reviewed_at=None,
        )
        self._session.add(row)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            if _is_pending_violation(exc):
                raise ValueError("pending application already exists") from exc
            raise
        return _row_to_application(row)

    async def update_status(
        self,
        application_id: int,
        *,
        status: ApplicationStatus,
        reviewed_at: datetime.datetime,
        rejected_reason: str | None = None,
        expected_status: ApplicationStatus = ApplicationStatus.PENDING,
    ) -> OrgApplication | None:
        """Move an application out of ``expected_status``.

        Returns the updated record, or None if the application doesn't
        exist or is no longer in ``expected_status`` (a concurrent review
        won the race).
        """
        stmt = (
            update(OrgApplicationRow)
            .where(OrgApplicationRow.id == application_id)
            .where(OrgApplicationRow.status == expected_status)
            .values(
                status=status,
                reviewed_at=reviewed_at,
                rejected_reason=rejected_reason,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            return None

        row = await self._session.get(
            OrgApplicationRow, application_id, populate_existing=True
        )
        return _row_to_application(row) if row is not None else None


def _row_to_application(row: OrgApplicationRow) -> OrgApplication:
    return OrgApplication(
        id=row.id,
        user_id=row.user_id,
        org_name=row.org_name,
        status=row.status,
        created_at=row.created_at,
        registration_number=row.registration_number,
        registration_doc_url=row.registration_doc_url,
        contact_name=row.contact_name,
        contact_phone=row.contact_phone,
        contact_email=row.contact_email,
        description=row.description,
        rejected_reason=row.rejected_reason,
        reviewed_at=row.reviewed_at,
    )
