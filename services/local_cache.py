"""
Local Cache Store - whole-collection project cache in local storage
"""
import json
import logging
from typing import Any, Dict, List, Optional

from config.settings import PRIMARY_STORAGE_KEY, BACKUP_STORAGE_KEY
from models.project import Project, project_from_record
from models.results import StoreResult
from services.errors import QuotaExceededError
from services.local_storage import FileKeyValueStorage

logger = logging.getLogger(__name__)


class LocalCacheStore:
    """
    Keeps the full project collection as one serialized blob under a primary
    key, mirrored under a backup key.

    Every save replaces the whole blob; there are no incremental writes.
    Loads never raise: a missing or unreadable blob is an empty collection.
    """

    def __init__(
        self,
        storage: FileKeyValueStorage,
        primary_key: str = PRIMARY_STORAGE_KEY,
        backup_key: str = BACKUP_STORAGE_KEY,
    ):
        self.storage = storage
        self.primary_key = primary_key
        self.backup_key = backup_key

    async def save(self, projects: List[Project]) -> StoreResult:
        return await self._write(self.primary_key, projects)

    async def load(self) -> List[Project]:
        return await self._read(self.primary_key)

    async def save_backup(self, projects: List[Project]) -> StoreResult:
        return await self._write(self.backup_key, projects)

    async def load_backup(self) -> List[Project]:
        return await self._read(self.backup_key)

    async def read_json(self, key: str) -> Optional[Any]:
        """Parsed JSON stored under any key, or None if absent or unreadable."""
        try:
            raw = await self.storage.get_item(key)
        except (OSError, ValueError) as e:
            logger.error(f"Error reading local storage key '{key}': {e}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Local storage key '{key}' holds malformed JSON: {e}")
            return None

    async def clear(self) -> None:
        await self.storage.remove_item(self.primary_key)
        await self.storage.remove_item(self.backup_key)
        logger.info("Local project cache cleared")

    async def usage(self) -> Dict[str, Any]:
        return {
            "used": await self.storage.usage_bytes(),
            "total": self.storage.quota_bytes,
            "keys": await self.storage.keys(),
        }

    async def _write(self, key: str, projects: List[Project]) -> StoreResult:
        try:
            payload = json.dumps([project.model_dump(mode="json") for project in projects])
        except (TypeError, ValueError) as e:
            logger.error(f"Could not serialize projects for '{key}': {e}")
            return StoreResult.failed(str(e))

        try:
            await self.storage.set_item(key, payload)
        except QuotaExceededError as e:
            logger.warning(str(e))
            return StoreResult.quota_exceeded(str(e))
        except (OSError, ValueError) as e:
            logger.error(f"Error saving projects to '{key}': {e}")
            return StoreResult.failed(str(e))

        logger.debug(f"Saved {len(projects)} projects to '{key}'")
        return StoreResult.success(len(projects))

    async def _read(self, key: str) -> List[Project]:
        data = await self.read_json(key)
        if not isinstance(data, list):
            return []
        projects = []
        for item in data:
            project = project_from_record(item)
            if project is not None:
                projects.append(project)
        return projects
