"""
Projects router - public catalog reads and owner-only catalog writes
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from auth import get_current_owner
from backend.utils.responses import success_response, error_response
from models.project import ProjectCreate, ProjectUpdate
from models.results import StoreStatus
from services.errors import LocalStorageExhaustedError
from services.project_sync import ProjectSyncCoordinator

logger = logging.getLogger(__name__)

projects_router = APIRouter(prefix="/api/projects", tags=["projects"])


def get_project_sync(request: Request) -> ProjectSyncCoordinator:
    """Coordinator built at startup and shared by every request."""
    return request.app.state.project_sync


def _not_found(project_id: str):
    return error_response("not_found", status=404, message=f"Project {project_id} not found")


def _storage_exhausted(e: LocalStorageExhaustedError):
    logger.error(f"Local storage exhausted: {e}")
    return error_response(
        "storage_exhausted",
        status=507,
        message="Local storage is full even after removing embedded images. Use hosted image URLs instead.",
    )


@projects_router.get("")
async def list_projects(
    featured: bool = False,
    q: Optional[str] = Query(None, max_length=200),
    tag: Optional[str] = Query(None, max_length=100),
    sync: ProjectSyncCoordinator = Depends(get_project_sync),
):
    """List the catalog; `featured`, `q` and `tag` narrow the result."""
    if q:
        projects = await sync.search_projects(q)
    elif tag:
        projects = await sync.get_projects_by_tag(tag)
    else:
        projects = await sync.get_all_projects()

    if tag and q:
        wanted = tag.strip().lower()
        projects = [p for p in projects if any(label.lower() == wanted for label in p.technologies + p.tags)]
    if featured:
        projects = [p for p in projects if p.featured]

    return success_response(
        data={"projects": [p.model_dump(mode="json") for p in projects], "count": len(projects)}
    )


@projects_router.get("/slug/{slug}")
async def get_project_by_slug(slug: str, sync: ProjectSyncCoordinator = Depends(get_project_sync)):
    project = await sync.get_project_by_slug(slug)
    if project is None:
        return _not_found(slug)
    return success_response(data={"project": project.model_dump(mode="json")})


@projects_router.get("/{project_id}")
async def get_project(project_id: str, sync: ProjectSyncCoordinator = Depends(get_project_sync)):
    project = await sync.get_project_by_id(project_id)
    if project is None:
        return _not_found(project_id)
    return success_response(data={"project": project.model_dump(mode="json")})


@projects_router.post("")
async def create_project(
    payload: ProjectCreate,
    owner: dict = Depends(get_current_owner),
    sync: ProjectSyncCoordinator = Depends(get_project_sync),
):
    try:
        project = await sync.create_project(payload, user_id=owner["user_id"])
    except LocalStorageExhaustedError as e:
        return _storage_exhausted(e)
    return success_response(data={"project": project.model_dump(mode="json")}, message="Project created", status=201)


@projects_router.post("/sync")
async def sync_projects(
    owner: dict = Depends(get_current_owner),
    sync: ProjectSyncCoordinator = Depends(get_project_sync),
):
    """Push local-only projects to the remote store."""
    result = await sync.sync_local_to_remote()
    if result.status == StoreStatus.NOT_CONFIGURED:
        return error_response("remote_not_configured", status=409, message="No remote store is configured")
    if not result.ok:
        return error_response("remote_unavailable", status=502, message=result.error or "Remote store unavailable")

    migrated = [p.model_dump(mode="json") for p in result.value]
    return success_response(data={"migrated": migrated, "count": len(migrated)}, message="Sync complete")


@projects_router.patch("/{project_id}")
async def update_project(
    project_id: str,
    payload: ProjectUpdate,
    owner: dict = Depends(get_current_owner),
    sync: ProjectSyncCoordinator = Depends(get_project_sync),
):
    try:
        project = await sync.update_project(project_id, payload)
    except LocalStorageExhaustedError as e:
        return _storage_exhausted(e)
    if project is None:
        return _not_found(project_id)
    return success_response(data={"project": project.model_dump(mode="json")}, message="Project updated")


@projects_router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    owner: dict = Depends(get_current_owner),
    sync: ProjectSyncCoordinator = Depends(get_project_sync),
):
    try:
        deleted = await sync.delete_project(project_id)
    except LocalStorageExhaustedError as e:
        return _storage_exhausted(e)
    if not deleted:
        return _not_found(project_id)
    return success_response(data={"id": project_id}, message="Project deleted")
