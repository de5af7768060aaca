"""
Unified Sync Coordinator - the single writer of the project catalog.

Reads prefer the remote table and fold in anything only the local cache
knows about; writes go to the remote first and always land in the local
cache (primary + backup), falling back to local-only when the remote is
missing or failing. Consistency is last-writer-wins: there is exactly one
owner editing the catalog, so no locking or conflict detection is done.
"""
import logging
import time
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from config.settings import Settings
from models.project import (
    Project,
    ProjectCreate,
    ProjectUpdate,
    apply_update,
    build_project,
    strip_embedded_images,
    utc_now,
)
from models.results import StoreResult, StoreStatus
from services.data_recovery import DataRecoveryScan
from services.errors import LocalStorageExhaustedError
from services.local_cache import LocalCacheStore
from services.local_storage import FileKeyValueStorage
from services.project_events import ProjectEventBus
from services.remote_store import NotConfiguredProjectStore, RemoteProjectStore, SqlProjectStore

logger = logging.getLogger(__name__)


def merge_projects(primary: Iterable[Project], extra: Iterable[Project]) -> List[Project]:
    """`primary` in order, then every `extra` record whose id is not already present."""
    merged: Dict[str, Project] = {}
    for project in list(primary) + list(extra):
        if project.id not in merged:
            merged[project.id] = project
    return list(merged.values())


def _find(projects: Iterable[Project], project_id: str) -> Optional[Project]:
    return next((project for project in projects if project.id == project_id), None)


def upsert_project(projects: List[Project], project: Project) -> List[Project]:
    """Replace the record with the same id, or append it."""
    updated = [project if existing.id == project.id else existing for existing in projects]
    if not any(existing.id == project.id for existing in projects):
        updated.append(project)
    return updated


class ProjectSyncCoordinator:
    """
    Orchestrates the remote store, the local cache and the recovery scan.

    One instance is built per process (see build_project_sync) and shared by
    every request; the recovery scan runs on the first read of that session.
    """

    def __init__(
        self,
        remote: RemoteProjectStore,
        cache: LocalCacheStore,
        recovery: DataRecoveryScan,
        events: Optional[ProjectEventBus] = None,
    ):
        self.remote = remote
        self.cache = cache
        self.recovery = recovery
        self.events = events or ProjectEventBus()
        self._recovered: Optional[List[Project]] = None
        # Last collection handed to the cache, whether or not the write succeeded
        self._working: List[Project] = []
        self._unsaved = False

    async def _local_projects(self) -> List[Project]:
        """
        Recovery output on the first call, the coordinator's own cache afterwards.

        The in-memory working copy is served instead when the last local write
        failed, or when neither cache key holds anything.
        """
        if self._recovered is None:
            self._recovered = await self.recovery.run()
            self._working = list(self._recovered)
            return list(self._recovered)

        if self._unsaved:
            return list(self._working)

        projects = await self.cache.load()
        if not projects:
            projects = await self.cache.load_backup()
        if not projects and self._working:
            logger.warning("Local cache is empty, serving the in-memory working copy")
            projects = list(self._working)
        return projects

    async def get_all_projects(self) -> List[Project]:
        """
        Unified read path.

        - Remote not configured, failing or empty: the local view is returned
          as-is (an empty remote means "not populated yet", never "wiped").
        - Remote has rows: remote rows first, then local-only records; the
          merged view is written back to the local cache.
        """
        local = await self._local_projects()

        if not self.remote.configured:
            logger.debug("Remote store not configured, serving local projects")
            return local

        result = await self.remote.list_all()
        if result.status == StoreStatus.FAILED:
            logger.warning(f"Remote store unavailable, serving local projects: {result.error}")
            return local
        if not result.ok:
            logger.info("Remote store has no projects yet, serving local projects")
            return local

        merged = merge_projects(result.value, local)
        await self._persist(merged, strict=False)
        return merged

    async def get_project_by_id(self, project_id: str) -> Optional[Project]:
        for project in await self.get_all_projects():
            if project.id == project_id:
                return project
        return None

    async def get_project_by_slug(self, slug: str) -> Optional[Project]:
        for project in await self.get_all_projects():
            if project.slug == slug:
                return project
        return None

    async def get_featured_projects(self) -> List[Project]:
        return [project for project in await self.get_all_projects() if project.featured]

    async def search_projects(self, query: str) -> List[Project]:
        """Case-insensitive match on title, description, content and technologies."""
        needle = query.strip().lower()
        projects = await self.get_all_projects()
        if not needle:
            return projects
        return [
            project for project in projects
            if needle in project.title.lower()
            or needle in project.description.lower()
            or needle in project.content.lower()
            or any(needle in tech.lower() for tech in project.technologies)
        ]

    async def get_projects_by_tag(self, tag: str) -> List[Project]:
        """Projects listing `tag` among their technologies or tags (case-insensitive)."""
        wanted = tag.strip().lower()
        return [
            project for project in await self.get_all_projects()
            if any(label.lower() == wanted for label in project.technologies + project.tags)
        ]

    async def create_project(self, data: ProjectCreate, user_id: Optional[str] = None) -> Project:
        """
        Create a project. Never fails because of the remote: when the insert
        is not possible the project is kept locally under a timestamp id.

        Raises:
            LocalStorageExhaustedError: if the local cache cannot hold the collection
        """
        current = await self.get_all_projects()
        project = build_project(self._new_local_id(current), data, user_id, utc_now())

        if self.remote.configured:
            result = await self.remote.insert(project)
            if result.ok:
                project = result.value
            else:
                logger.warning(f"Remote insert failed, keeping project '{project.title}' locally: {result.error}")
        else:
            logger.info(f"Remote store not configured, creating project '{project.title}' locally")

        saved = await self._persist(upsert_project(current, project))
        project = _find(saved, project.id) or project
        self.events.publish("created", project.id, project.image_url)
        return project

    async def update_project(self, project_id: str, update: ProjectUpdate) -> Optional[Project]:
        """
        Apply a partial update. Returns None, changing nothing, when no
        project has this id. The remote update is best-effort.

        Raises:
            LocalStorageExhaustedError: if the local cache cannot hold the collection
        """
        projects = await self.get_all_projects()
        index = next((i for i, project in enumerate(projects) if project.id == project_id), None)
        if index is None:
            logger.warning(f"Project not found for update: {project_id}")
            return None

        updated = apply_update(projects[index], update)
        projects[index] = updated

        if self.remote.configured:
            values = {**update.changes(), "slug": updated.slug, "updated_at": updated.updated_at}
            result = await self.remote.update(project_id, values)
            if not result.ok:
                logger.warning(f"Remote update of project {project_id} failed ({result.status.value}): {result.error}")

        saved = await self._persist(projects)
        updated = _find(saved, project_id) or updated
        self.events.publish("updated", project_id, updated.image_url)
        return updated

    async def delete_project(self, project_id: str) -> bool:
        """
        Delete a project. The remote delete is best-effort; the result only
        reflects whether the project was removed from the local collection.
        """
        projects = await self.get_all_projects()

        if self.remote.configured:
            result = await self.remote.delete(project_id)
            if not result.ok:
                logger.warning(f"Remote delete of project {project_id} failed ({result.status.value}): {result.error}")

        remaining = [project for project in projects if project.id != project_id]
        if len(remaining) == len(projects):
            logger.warning(f"Project not found for delete: {project_id}")
            return False

        await self._persist(remaining)
        self.events.publish("deleted", project_id, "")
        return True

    async def sync_local_to_remote(self) -> StoreResult:
        """
        Push local-only projects to the remote table.

        The migrated records take the ids the remote assigns, and the local
        cache is rewritten with them so the next read does not duplicate them.
        """
        if not self.remote.configured:
            return StoreResult.not_configured()

        remote = await self.remote.list_all()
        if remote.status == StoreStatus.FAILED:
            return remote
        remote_projects = remote.value or []
        remote_ids = {project.id for project in remote_projects}

        local = await self._local_projects()
        pending = [project for project in local if project.id not in remote_ids]
        if not pending:
            logger.info("Sync: no local-only projects to push")
            return StoreResult.success([])

        result = await self.remote.insert_many(pending)
        if not result.ok:
            return result

        migrated = {old.id: new for old, new in zip(pending, result.value)}
        collection = merge_projects(remote_projects, [migrated.get(p.id, p) for p in local])
        await self._persist(collection, strict=False)
        logger.info(f"Sync: pushed {len(migrated)} projects to the remote store")
        return StoreResult.success(list(migrated.values()))

    async def clear_storage(self) -> None:
        """Drop the local cache; the next read starts a fresh recovery."""
        await self.cache.clear()
        self._recovered = None
        self._working, self._unsaved = [], False

    async def storage_usage(self) -> Dict[str, Any]:
        usage = await self.cache.usage()
        usage["remote_configured"] = self.remote.configured
        return usage

    @staticmethod
    def _new_local_id(existing: List[Project]) -> str:
        taken = {project.id for project in existing}
        candidate = int(time.time() * 1000)
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)

    async def _persist(self, projects: List[Project], strict: bool = True) -> List[Project]:
        """
        Write the collection to the primary key, then mirror it to the backup.

        A full store gets one retry with embedded image payloads stripped. If
        that fails too, `strict` callers get LocalStorageExhaustedError; other
        failures are only logged.
        """
        saved = projects
        result = await self.cache.save(saved)

        if result.status == StoreStatus.QUOTA_EXCEEDED:
            logger.warning("Local storage full, retrying without embedded images")
            saved = [strip_embedded_images(project) for project in projects]
            result = await self.cache.save(saved)

        if not result.ok:
            if strict and result.status == StoreStatus.QUOTA_EXCEEDED:
                raise LocalStorageExhaustedError(result.error)
            logger.error(f"Could not persist projects locally: {result.error}")
            self._working, self._unsaved = list(saved), True
            return saved

        self._working, self._unsaved = list(saved), False

        backup = await self.cache.save_backup(saved)
        if not backup.ok:
            logger.warning(f"Could not update backup copy: {backup.error}")
        return saved


def build_project_sync(app_settings: Settings, session_factory: Optional[async_sessionmaker] = None) -> ProjectSyncCoordinator:
    """
    Wire the coordinator from settings.

    Without a session factory the remote store is treated as not configured.
    """
    storage = FileKeyValueStorage(app_settings.local_storage_dir, app_settings.local_storage_quota_bytes)
    cache = LocalCacheStore(storage, app_settings.primary_storage_key, app_settings.backup_storage_key)
    recovery = DataRecoveryScan(
        cache,
        legacy_keys=app_settings.recovery_legacy_keys,
        allowed_titles=app_settings.recovery_allowed_titles,
        filter_enabled=app_settings.recovery_filter_enabled,
    )
    remote = SqlProjectStore(session_factory) if session_factory else NotConfiguredProjectStore()
    return ProjectSyncCoordinator(remote, cache, recovery, ProjectEventBus())
