"""
Storage router - inspect and reset the local project cache (owner only)
"""
import logging

from fastapi import APIRouter, Depends

from auth import get_current_owner
from backend.utils.responses import success_response
from routers.projects_router import get_project_sync
from services.project_sync import ProjectSyncCoordinator

logger = logging.getLogger(__name__)

storage_router = APIRouter(prefix="/api/storage", tags=["storage"])


@storage_router.get("")
async def get_storage_usage(
    owner: dict = Depends(get_current_owner),
    sync: ProjectSyncCoordinator = Depends(get_project_sync),
):
    """Bytes used against the quota and the keys currently stored."""
    usage = await sync.storage_usage()
    return success_response(data=usage)


@storage_router.delete("")
async def clear_storage(
    owner: dict = Depends(get_current_owner),
    sync: ProjectSyncCoordinator = Depends(get_project_sync),
):
    await sync.clear_storage()
    logger.info("Local project cache cleared by owner")
    return success_response(message="Local storage cleared")
