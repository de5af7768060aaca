"""
Tests for the remote project store adapters against an in-memory SQLite table
"""
import pytest
from sqlalchemy.exc import OperationalError

from crud.project import ProjectRepository
from models.project import Project
from models.results import StoreStatus
from services.remote_store import REMOTE_ERRORS, NotConfiguredProjectStore, RemoteProjectStore, SqlProjectStore


def _project(title: str, **fields) -> Project:
    return Project(id="local-id", title=title, slug=title.lower(), **fields)


@pytest.mark.asyncio
async def test_list_all_on_empty_table_is_empty_not_failed(remote_store):
    result = await remote_store.list_all()

    assert result.status == StoreStatus.EMPTY
    assert result.value == []


@pytest.mark.asyncio
async def test_insert_assigns_remote_id_and_maps_columns(remote_store, session_factory):
    result = await remote_store.insert(_project(
        "WOOD-ID",
        project_images=["https://cdn.example.com/1.png"],
        live_url="https://wood.example.com",
        technologies=["Timber"],
    ))

    assert result.ok
    created = result.value
    assert created.id != "local-id"
    assert created.project_images == ["https://cdn.example.com/1.png"]
    assert created.live_url == "https://wood.example.com"

    # Stored under the hosted table's column names
    async with session_factory() as session:
        row = await ProjectRepository(session).get_project(created.id)
    assert row.images == ["https://cdn.example.com/1.png"]
    assert row.project_url == "https://wood.example.com"


@pytest.mark.asyncio
async def test_list_all_orders_newest_first(remote_store):
    await remote_store.insert(_project("Old", created_at="2024-01-01T00:00:00+00:00"))
    await remote_store.insert(_project("New", created_at="2025-06-01T00:00:00+00:00"))

    result = await remote_store.list_all()

    assert result.ok
    assert [p.title for p in result.value] == ["New", "Old"]
    assert all(isinstance(p.id, str) for p in result.value)


@pytest.mark.asyncio
async def test_get_update_delete(remote_store):
    created = (await remote_store.insert(_project("KHC-HOSPITAL"))).value

    fetched = await remote_store.get_by_id(created.id)
    assert fetched.ok
    assert fetched.value.title == "KHC-HOSPITAL"

    updated = await remote_store.update(created.id, {"subtitle": "Healthcare", "project_images": ["x.png"]})
    assert updated.ok
    assert updated.value.subtitle == "Healthcare"
    assert updated.value.project_images == ["x.png"]
    assert updated.value.id == created.id

    deleted = await remote_store.delete(created.id)
    assert deleted.ok
    assert (await remote_store.get_by_id(created.id)).status == StoreStatus.NOT_FOUND


@pytest.mark.asyncio
async def test_missing_rows_are_not_found(remote_store):
    assert (await remote_store.get_by_id("nope")).status == StoreStatus.NOT_FOUND
    assert (await remote_store.update("nope", {"title": "x"})).status == StoreStatus.NOT_FOUND
    assert (await remote_store.delete("nope")).status == StoreStatus.NOT_FOUND


@pytest.mark.asyncio
async def test_insert_many_is_one_transaction(remote_store):
    result = await remote_store.insert_many([_project("WOOD-ID"), _project("Flow-SIGHT")])

    assert result.ok
    assert len({p.id for p in result.value}) == 2
    listed = await remote_store.list_all()
    assert {p.title for p in listed.value} == {"WOOD-ID", "Flow-SIGHT"}


@pytest.mark.asyncio
async def test_database_errors_become_failed_results(test_engine, session_factory):
    # Dropping the table makes every query raise inside the adapter
    async with test_engine.begin() as conn:
        await conn.exec_driver_sql("DROP TABLE projects")
    store = SqlProjectStore(session_factory)

    listed = await store.list_all()
    inserted = await store.insert(_project("WOOD-ID"))

    assert listed.status == StoreStatus.FAILED
    assert inserted.status == StoreStatus.FAILED
    assert "projects" in listed.error


@pytest.mark.asyncio
async def test_not_configured_store_never_attempts_anything():
    store = NotConfiguredProjectStore()

    assert store.configured is False
    assert (await store.list_all()).status == StoreStatus.NOT_CONFIGURED
    assert (await store.insert(_project("WOOD-ID"))).status == StoreStatus.NOT_CONFIGURED
    assert (await store.delete("1")).status == StoreStatus.NOT_CONFIGURED


def test_adapters_satisfy_protocol():
    assert isinstance(SqlProjectStore(session_factory=None), RemoteProjectStore)
    assert isinstance(NotConfiguredProjectStore(), RemoteProjectStore)


def test_operational_error_is_a_remote_error():
    assert issubclass(OperationalError, REMOTE_ERRORS)
