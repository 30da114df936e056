"""
Fixtures for testing.
"""

from typing import AsyncIterator, Dict, Iterable, List, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from logviews.config import DatabaseConfig, ForeignConnectionConfig, Settings
from logviews.database.base import Base
from logviews.errors import ForeignConnectionException
from logviews.internal.connections import ForeignConnector
from logviews.internal.tenants import TenantDirectory
from logviews.models.access import UNRESTRICTED, Scope
from logviews.models.catalog import Catalog
from logviews.models.tenant import OwnerKind, Tenant
from tests.examples import CATALOG, TENANTS


class InMemoryTenantDirectory(TenantDirectory):
    """
    Tenant directory over a fixed list of tenants.
    """

    def __init__(self, tenants: Iterable[tuple] = TENANTS):
        self.tenants = list(tenants)
        self.calls: List[tuple] = []

    async def get_tenants(
        self,
        whitelabel_ids: Scope = UNRESTRICTED,
        parent_ids: Scope = UNRESTRICTED,
        owner_kind: OwnerKind = OwnerKind.AGENCY,
    ) -> List[Tenant]:
        self.calls.append((whitelabel_ids, parent_ids, owner_kind))
        found = []
        for tenant_id, name, agency_id, whitelabel_id, _ in self.tenants:
            if (agency_id == 0) != (owner_kind == OwnerKind.AGENCY):
                continue
            parent = tenant_id if owner_kind == OwnerKind.AGENCY else agency_id
            if parent_ids != UNRESTRICTED and parent not in parent_ids:
                continue
            if whitelabel_ids != UNRESTRICTED and whitelabel_id not in whitelabel_ids:
                continue
            found.append(Tenant(id=tenant_id, name=name))
        return found

    async def get_tenant_time_zone(self, tenant_id: int) -> Optional[str]:
        for candidate, _, _, _, time_zone in self.tenants:
            if candidate == tenant_id:
                return time_zone
        return None


class RecordingConnector(ForeignConnector):
    """
    Connector that records connection names and fails for the ones it is told to.
    """

    def __init__(self, failing: Iterable[str] = ()):
        self.connected: List[str] = []
        self.failing = set(failing)

    async def connect(self, name: str) -> None:
        if name in self.failing:
            raise ForeignConnectionException(name)
        self.connected.append(name)


@pytest.fixture
def settings() -> Settings:
    """
    Settings for an unqualified in-memory cache store.
    """
    return Settings(
        writer_db=DatabaseConfig(uri="sqlite+aiosqlite://"),
        cache_schema=None,
        foreign_connections={
            "atom": ForeignConnectionConfig(
                host="atom-replica",
                database="atom",
                user="reader",
                password="s3cret",
            ),
        },
    )


@pytest.fixture
def catalog() -> Catalog:
    """
    A small catalog with impression and beacon logs.
    """
    return Catalog.model_validate(CATALOG)


@pytest.fixture
def tenants() -> InMemoryTenantDirectory:
    """
    Tenant directory with two agencies in whitelabel 1 and one in whitelabel 2.
    """
    return InMemoryTenantDirectory()


@pytest.fixture
def connector() -> RecordingConnector:
    """
    Foreign connector that never fails.
    """
    return RecordingConnector()


@pytest_asyncio.fixture
async def session_factory() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """
    Session factory over an in-memory SQLite cache store shared by all sessions.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """
    A cache store session.
    """
    async with session_factory() as session:
        yield session


def column_pairs(view_id: str, names: Iterable[str]) -> List[List[str]]:
    """
    An expression tree listing columns of a view as ``[column, view]`` pairs.
    """
    return [[name, view_id] for name in names]


def tree(view_id: str, *names: str) -> Dict:
    """
    A nested expression tree referencing columns of a view.
    """
    return {
        "type": "select",
        "columns": column_pairs(view_id, names),
        "where": {"type": "and", "args": []},
    }
