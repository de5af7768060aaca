"""
Integration tests for the projects and storage routers

Tests cover:
- Public catalog reads and filters
- Owner-only writes (401 without a token)
- Error envelopes for not found and storage exhaustion
"""
import pytest
from fastapi.testclient import TestClient

from main import app
from auth import get_current_owner
from models.results import StoreResult
from routers.projects_router import get_project_sync
from services.data_recovery import DataRecoveryScan
from services.local_cache import LocalCacheStore
from services.local_storage import FileKeyValueStorage
from services.project_sync import ProjectSyncCoordinator
from services.remote_store import NotConfiguredProjectStore


class FullCache(LocalCacheStore):
    """Cache that never accepts more than the seed collection."""

    async def save(self, projects):
        if len(projects) > 3:
            return StoreResult.quota_exceeded("quota exceeded")
        return await super().save(projects)


async def mock_get_current_owner() -> dict:
    """Mock get_current_owner dependency that returns the catalog owner"""
    return {"user_id": "owner", "email": "owner@example.com"}


def _coordinator(cache: LocalCacheStore) -> ProjectSyncCoordinator:
    return ProjectSyncCoordinator(NotConfiguredProjectStore(), cache, DataRecoveryScan(cache))


@pytest.fixture
def project_sync(tmp_path):
    return _coordinator(LocalCacheStore(FileKeyValueStorage(tmp_path / "local_storage")))


@pytest.fixture
def client(project_sync):
    """FastAPI TestClient with a local-only coordinator"""
    app.dependency_overrides[get_project_sync] = lambda: project_sync

    test_client = TestClient(app)

    yield test_client

    # Cleanup: remove dependency overrides
    app.dependency_overrides.clear()


@pytest.fixture
def owner_client(client):
    app.dependency_overrides[get_current_owner] = mock_get_current_owner
    return client


def test_list_projects_returns_seed_catalog(client):
    response = client.get("/api/projects")

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["error"] is None
    assert body["data"]["count"] == 3
    assert [p["id"] for p in body["data"]["projects"]] == ["1", "2", "3"]


def test_list_projects_filters(client):
    assert [p["id"] for p in client.get("/api/projects", params={"q": "cork"}).json()["data"]["projects"]] == ["1"]
    assert [p["id"] for p in client.get("/api/projects", params={"tag": "research"}).json()["data"]["projects"]] == ["2"]
    assert client.get("/api/projects", params={"featured": "true"}).json()["data"]["count"] == 3


def test_get_project_by_id_and_slug(client):
    by_id = client.get("/api/projects/1")
    by_slug = client.get("/api/projects/slug/hypar-portables")

    assert by_id.status_code == 200
    assert by_id.json()["data"]["project"]["title"] == "HYPAR PORTABLES"
    assert by_slug.json()["data"]["project"]["id"] == "1"


def test_missing_project_is_404(client):
    for path in ("/api/projects/999", "/api/projects/slug/nope"):
        response = client.get(path)
        assert response.status_code == 404
        assert response.json()["ok"] is False
        assert response.json()["error"] == "not_found"


def test_writes_require_owner(client):
    assert client.post("/api/projects", json={"title": "WOOD-ID"}).status_code == 401
    assert client.patch("/api/projects/1", json={"subtitle": "x"}).status_code == 401
    assert client.delete("/api/projects/1").status_code == 401
    assert client.post("/api/projects/sync").status_code == 401
    assert client.get("/api/storage").status_code == 401


def test_create_project(owner_client):
    response = owner_client.post("/api/projects", json={"title": "My New Project", "technologies": ["Timber"]})

    assert response.status_code == 201
    project = response.json()["data"]["project"]
    assert project["slug"] == "my-new-project"
    assert project["user_id"] == "owner"

    fetched = owner_client.get(f"/api/projects/{project['id']}")
    assert fetched.status_code == 200


def test_create_project_validation(owner_client):
    assert owner_client.post("/api/projects", json={"title": "   "}).status_code == 422
    assert owner_client.post("/api/projects", json={}).status_code == 422


def test_update_project(owner_client):
    response = owner_client.patch("/api/projects/2", json={"location": "Kochi"})

    assert response.status_code == 200
    assert response.json()["data"]["project"]["location"] == "Kochi"
    assert owner_client.patch("/api/projects/999", json={"location": "x"}).status_code == 404


def test_delete_project(owner_client):
    response = owner_client.delete("/api/projects/3")

    assert response.status_code == 200
    assert response.json()["data"]["id"] == "3"
    assert owner_client.get("/api/projects/3").status_code == 404
    assert owner_client.delete("/api/projects/3").status_code == 404


def test_sync_without_remote_is_409(owner_client):
    response = owner_client.post("/api/projects/sync")

    assert response.status_code == 409
    assert response.json()["error"] == "remote_not_configured"


def test_storage_usage_and_clear(owner_client):
    owner_client.get("/api/projects")

    usage = owner_client.get("/api/storage").json()["data"]
    assert usage["used"] > 0
    assert usage["remote_configured"] is False

    assert owner_client.delete("/api/storage").status_code == 200
    assert owner_client.get("/api/storage").json()["data"]["keys"] == []


def test_storage_exhausted_is_507(tmp_path):
    cache = FullCache(FileKeyValueStorage(tmp_path / "local_storage"))
    app.dependency_overrides[get_project_sync] = lambda: _coordinator(cache)
    app.dependency_overrides[get_current_owner] = mock_get_current_owner
    try:
        response = TestClient(app).post("/api/projects", json={"title": "One too many"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 507
    assert response.json()["error"] == "storage_exhausted"
