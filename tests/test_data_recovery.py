"""
Unit tests for the DataRecoveryScan
"""
import json

import pytest

from services.data_recovery import DataRecoveryScan, SEED_PROJECTS, seed_projects


async def _write(storage, key, records):
    await storage.set_item(key, json.dumps(records))


@pytest.mark.asyncio
async def test_empty_storage_yields_seed_projects(recovery, cache):
    projects = await recovery.run()

    assert [p.title for p in projects] == [record["title"] for record in SEED_PROJECTS]
    assert [p.id for p in projects] == ["1", "2", "3"]
    # Recovery output is persisted to both keys
    assert await cache.load() == projects
    assert await cache.load_backup() == projects


def test_seed_projects_are_deterministic():
    assert seed_projects() == seed_projects()


def test_seed_projects_are_published_plain_text():
    for project in seed_projects():
        assert project.status == "published"
        assert project.featured is True
        assert "<" not in project.content
        assert project.content.startswith(project.title.upper())


@pytest.mark.asyncio
async def test_only_allow_listed_titles_survive(recovery, storage, cache):
    await _write(storage, cache.primary_key, [
        {"id": "10", "title": "WOOD-ID"},
        {"id": "11", "title": "Untitled Test"},
    ])

    projects = await recovery.run()

    assert [p.title for p in projects] == ["WOOD-ID"]
    assert [p.title for p in await cache.load()] == ["WOOD-ID"]


@pytest.mark.asyncio
async def test_recovery_is_idempotent(recovery, storage, cache):
    await _write(storage, cache.primary_key, [{"id": "10", "title": "WOOD-ID"}])
    await _write(storage, "dynamic_portfolio_projects", [{"id": "12", "title": "Flow-SIGHT"}])

    first = await recovery.run()
    second = await recovery.run()

    assert first == second
    assert {p.id for p in first} == {"10", "12"}


@pytest.mark.asyncio
async def test_first_seen_wins_across_keys(recovery, storage, cache):
    await _write(storage, cache.primary_key, [{"id": "10", "title": "WOOD-ID", "subtitle": "primary"}])
    await _write(storage, cache.backup_key, [
        {"id": "10", "title": "WOOD-ID", "subtitle": "backup"},
        {"id": "13", "title": "KHC-HOSPITAL"},
    ])
    await _write(storage, "dynamic_portfolio_projects", [{"id": "13", "title": "KHC-HOSPITAL", "subtitle": "legacy"}])

    projects = await recovery.run()

    by_id = {p.id: p for p in projects}
    assert by_id["10"].subtitle == "primary"
    assert by_id["13"].subtitle == ""
    assert [p.id for p in projects] == ["10", "13"]


@pytest.mark.asyncio
async def test_unreadable_primary_falls_through_to_backup(recovery, storage, cache):
    await storage.set_item(cache.primary_key, "{corrupted")
    await _write(storage, cache.backup_key, [{"id": "14", "title": "HYPAR PORTABLES"}])

    projects = await recovery.run()

    assert [p.id for p in projects] == ["14"]
    # Self-healing: primary is rewritten from what was recovered
    assert [p.id for p in await cache.load()] == ["14"]


@pytest.mark.asyncio
async def test_only_unknown_titles_falls_back_to_seed(recovery, storage, cache):
    await _write(storage, cache.primary_key, [{"id": "99", "title": "debug entry"}])

    projects = await recovery.run()

    assert [p.id for p in projects] == ["1", "2", "3"]


@pytest.mark.asyncio
async def test_filter_can_be_disabled(cache, storage):
    await _write(storage, cache.primary_key, [{"id": "15", "title": "My New Project"}])
    scan = DataRecoveryScan(cache, filter_enabled=False)

    projects = await scan.run()

    assert [p.title for p in projects] == ["My New Project"]


def test_source_keys_order_and_dedup(cache):
    scan = DataRecoveryScan(cache, legacy_keys=["dynamic_portfolio_projects", cache.primary_key, "old_projects"])

    assert scan.source_keys() == [
        "portfolio_projects",
        "portfolio_projects_backup",
        "dynamic_portfolio_projects",
        "old_projects",
    ]
