"""Unit of Work: one transaction spanning every repository a workflow touches.

Usage:
    async with uow_factory() as uow:
        org = await uow.organizations.add(...)
        await uow.memberships.add(...)
        # commit on clean exit, rollback on exception

Two implementations share the contract:
- SqlAlchemyUnitOfWork: one AsyncSession per unit, repos bound to it
- InMemoryUnitOfWork: snapshots the shared in-memory stores on entry and
  restores them on rollback

``uow_factory`` picks the implementation from DATABASE_URL, the same way
the token blacklist picks Redis vs in-memory from REDIS_URL.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.engine import async_session_factory
from app.repos.org_application_repo import InMemoryOrgApplicationRepo, OrgApplicationRepo
from app.repos.org_membership_repo import InMemoryOrgMembershipRepo, OrgMembershipRepo
from app.repos.org_repo import InMemoryOrgRepo, OrgRepo
from app.repos.pg_org_application_repo import PgOrgApplicationRepo
from app.repos.pg_org_membership_repo import PgOrgMembershipRepo
from app.repos.pg_org_repo import PgOrgRepo
from app.repos.pg_user_repo import PgUserRepo
from app.repos.user_repo import InMemoryUserRepo, UserRepo

logger = logging.getLogger(__name__)


class AbstractUnitOfWork(ABC):
    users: UserRepo
    applications: OrgApplicationRepo
    organizations: OrgRepo
    memberships: OrgMembershipRepo

    def __init__(self) -> None:
        self._post_commit_hooks: list[Callable[[], None]] = []

    async def __aenter__(self) -> AbstractUnitOfWork:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        try:
            if exc_type is None:
                await self.commit()
            else:
                await self.rollback()
        finally:
            await self.close()

    def add_post_commit_hook(self, hook: Callable[[], None]) -> None:
        """Run ``hook`` only after the unit commits. Dropped on rollback."""
        self._post_commit_hooks.append(hook)

    async def commit(self) -> None:
        try:
            await self._commit()
            for hook in self._post_commit_hooks:
                try:
                    hook()
                except Exception:
                    # transaction is already durable; a hook can't undo it
                    logger.exception("Post-commit hook failed")
        finally:
            self._post_commit_hooks.clear()

    async def rollback(self) -> None:
        try:
            await self._rollback()
            logger.debug("Unit of work rolled back")
        finally:
            self._post_commit_hooks.clear()

    @abstractmethod
    async def _commit(self) -> None: ...

    @abstractmethod
    async def _rollback(self) -> None: ...

    async def close(self) -> None:
        return None


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        super().__init__()
        self._session_factory = session_factory
        self._session: AsyncSession | None = None

    async def __aenter__(self) -> SqlAlchemyUnitOfWork:
        self._session = self._session_factory()
        self.users = PgUserRepo(self._session)
        self.applications = PgOrgApplicationRepo(self._session)
        self.organizations = PgOrgRepo(self._session)
        self.memberships = PgOrgMembershipRepo(self._session)
        return self

    async def _commit(self) -> None:
        assert self._session is not None
        await self._session.commit()

    async def _rollback(self) -> None:
        assert self._session is not None
        await self._session.rollback()

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None


class InMemoryStores:
    """Process-wide in-memory repositories used when no database is configured."""

    def __init__(self) -> None:
        self.users = InMemoryUserRepo()
        self.applications = InMemoryOrgApplicationRepo()
        self.organizations = InMemoryOrgRepo()
        self.memberships = InMemoryOrgMembershipRepo()

    def _all(self) -> tuple[Any, ...]:
        return (self.users, self.applications, self.organizations, self.memberships)

    def snapshot(self) -> tuple[Any, ...]:
        return tuple(repo.snapshot() for repo in self._all())

    def restore(self, state: tuple[Any, ...]) -> None:
        for repo, repo_state in zip(self._all(), state, strict=True):
            repo.restore(repo_state)

    def reset(self) -> None:
        for repo in self._all():
            repo.clear()


class InMemoryUnitOfWork(AbstractUnitOfWork):
    """Snapshot-and-restore transaction over InMemoryStores.

    In-memory repo methods never suspend, so a unit's reads and writes can't
    interleave with another coroutine's. Rollback restores the snapshot
    taken on entry.
    """

    def __init__(self, stores: InMemoryStores) -> None:
        super().__init__()
        self._stores = stores
        self._snapshot: tuple[Any, ...] | None = None
        self.users = stores.users
        self.applications = stores.applications
        self.organizations = stores.organizations
        self.memberships = stores.memberships

    async def __aenter__(self) -> InMemoryUnitOfWork:
        self._snapshot = self._stores.snapshot()
        return self

    async def _commit(self) -> None:
        self._snapshot = None

    async def _rollback(self) -> None:
        if self._snapshot is not None:
            self._stores.restore(self._snapshot)
            self._snapshot = None


in_memory_stores = InMemoryStores()


def uow_factory() -> AbstractUnitOfWork:
    """Return a fresh unit of work for the configured backend."""
    if async_session_factory is not None:
        return SqlAlchemyUnitOfWork(async_session_factory)
    return InMemoryUnitOfWork(in_memory_stores)
