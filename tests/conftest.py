from __future__ import annotations

import asyncio
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Ensure repo root is on sys.path so `import app` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.db.engine import Base  # noqa: E402
from app.db.unit_of_work import in_memory_stores  # noqa: E402
from app.main import app  # noqa: E402
from app.models.org_application import NewApplication, OrgApplication  # noqa: E402
from app.models.organization import Organization, OrgMembership, OrgRole, OrgStatus  # noqa: E402
from app.models.user import User  # noqa: E402
from app.services import auth_service, token_service  # noqa: E402
from app.services.token_blacklist import InMemoryTokenBlacklist, token_blacklist  # noqa: E402


@pytest.fixture(autouse=True)
def reset_stores() -> None:
    """Clear every in-memory repository between tests."""
    in_memory_stores.reset()


@pytest.fixture(autouse=True)
def reset_token_blacklist() -> None:
    """Clear token blacklist between tests."""
    if isinstance(token_blacklist, InMemoryTokenBlacklist):
        token_blacklist.clear()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(
    username: str = "1",
    roles: list[str] | None = None,
) -> str:
    """Create a valid ES256 JWT for testing. ``username`` is the sub claim."""
    return token_service.create_access_token(sub=username, roles=roles)


def auth(token: str | None) -> dict[str, str]:
    if token is None:
        return {}
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def token() -> str:
    """Token with default role (user)."""
    return mint_token()


@pytest.fixture
def admin_token() -> str:
    """Token with admin role."""
    return mint_token(username="999", roles=["admin"])


# ---------------------------------------------------------------------------
# In-memory seeding helpers
# ---------------------------------------------------------------------------


def create_test_user(
    email: str = "user@example.com",
    password: str = "password123",
    roles: tuple[str, ...] = ("user",),
    name: str = "Test User",
) -> User:
    return asyncio.run(
        in_memory_stores.users.add(
            email=email,
            password_hash=auth_service.hash_password(password),
            name=name,
            roles=roles,
        )
    )


def create_test_application(user_id: int, org_name: str = "Helpers Inc") -> OrgApplication:
    return asyncio.run(
        in_memory_stores.applications.add(user_id, NewApplication(org_name=org_name))
    )


def create_test_org(
    name: str = "Test Org", status: OrgStatus = OrgStatus.APPROVED
) -> Organization:
    return asyncio.run(in_memory_stores.organizations.add(name=name, status=status))


def add_test_member(org_id: int, user_id: int, role: OrgRole = OrgRole.VIEWER) -> OrgMembership:
    return asyncio.run(
        in_memory_stores.memberships.add(org_id=org_id, user_id=user_id, role=role)
    )


# ---------------------------------------------------------------------------
# SQLite-backed SQLAlchemy sessions
# ---------------------------------------------------------------------------


@asynccontextmanager
async def sqlite_sessions() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Fresh in-memory SQLite schema, for use inside one ``asyncio.run``.

    StaticPool keeps the single connection (and so the database) alive
    across sessions.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await engine.dispose()
