"""
Pytest configuration and fixtures for testing
"""
import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from database import create_session_factory, init_db
from models.results import StoreResult
from services.data_recovery import DataRecoveryScan
from services.local_cache import LocalCacheStore
from services.local_storage import FileKeyValueStorage
from services.project_sync import ProjectSyncCoordinator
from services.remote_store import NotConfiguredProjectStore, SqlProjectStore

# In-memory SQLite database stands in for the hosted projects table
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FailingProjectStore:
    """Remote store that is configured but every call fails (network down)."""

    configured = True

    def __init__(self):
        self.calls = []

    async def _fail(self, name: str) -> StoreResult:
        self.calls.append(name)
        return StoreResult.failed("connection refused")

    async def list_all(self):
        return await self._fail("list_all")

    async def get_by_id(self, project_id):
        return await self._fail("get_by_id")

    async def insert(self, project):
        return await self._fail("insert")

    async def insert_many(self, projects):
        return await self._fail("insert_many")

    async def update(self, project_id, values):
        return await self._fail("update")

    async def delete(self, project_id):
        return await self._fail("delete")


@pytest.fixture
async def test_engine():
    """
    Fixture that provides an isolated, in-memory SQLite engine for each test.

    StaticPool keeps the single in-memory connection alive across sessions,
    so every session of the test sees the same tables.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return create_session_factory(test_engine)


@pytest.fixture
def remote_store(session_factory):
    return SqlProjectStore(session_factory)


@pytest.fixture
def failing_store():
    return FailingProjectStore()


@pytest.fixture
def storage(tmp_path):
    return FileKeyValueStorage(tmp_path / "local_storage")


@pytest.fixture
def cache(storage):
    return LocalCacheStore(storage)


@pytest.fixture
def recovery(cache):
    return DataRecoveryScan(cache)


@pytest.fixture
def local_sync(cache, recovery):
    """Coordinator with no remote store configured."""
    return ProjectSyncCoordinator(NotConfiguredProjectStore(), cache, recovery)


@pytest.fixture
def remote_sync(remote_store, cache, recovery):
    """Coordinator backed by the in-memory SQLite remote."""
    return ProjectSyncCoordinator(remote_store, cache, recovery)


@pytest.fixture
def failing_sync(failing_store, cache, recovery):
    """Coordinator whose remote is configured but unreachable."""
    return ProjectSyncCoordinator(failing_store, cache, recovery)
