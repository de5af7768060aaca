"""
File-backed key/value storage with a byte quota.

Plays the role browser localStorage plays for the site: string values under
string keys, whole-value writes only, and a hard size budget shared by all
keys. Each key is one file in the storage directory.
"""
import asyncio
import logging
import os
from pathlib import Path
from typing import List, Optional

import aiofiles

from config.settings import DEFAULT_STORAGE_QUOTA_BYTES
from services.errors import QuotaExceededError
from utils.security_utils import validate_storage_key

logger = logging.getLogger(__name__)


class FileKeyValueStorage:
    """Key/value store kept as one JSON file per key under `root`."""

    SUFFIX = ".json"

    def __init__(self, root: Path, quota_bytes: int = DEFAULT_STORAGE_QUOTA_BYTES):
        self.root = Path(root)
        self.quota_bytes = quota_bytes
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.root / f"{validate_storage_key(key)}{self.SUFFIX}"

    def _key_files(self) -> List[Path]:
        return sorted(
            path for path in self.root.glob(f"*{self.SUFFIX}")
            if path.is_file() and not path.name.startswith(".")
        )

    async def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""
        path = self._path(key)
        file_exists = await asyncio.to_thread(path.exists)
        if not file_exists:
            return None
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            return await f.read()

    async def set_item(self, key: str, value: str) -> None:
        """
        Replace the value stored under `key`.

        The value is written to a temp file and moved into place, so readers
        see either the old value or the new one. Raises QuotaExceededError
        without touching disk when the write would exceed the quota.
        """
        path = self._path(key)
        encoded = value.encode("utf-8")

        used = await self.usage_bytes(exclude=key)
        available = self.quota_bytes - used
        if len(encoded) > available:
            raise QuotaExceededError(key, len(encoded), max(available, 0))

        tmp_path = path.with_name(f".{path.name}.tmp")
        try:
            async with aiofiles.open(tmp_path, "wb") as f:
                await f.write(encoded)
            await asyncio.to_thread(os.replace, tmp_path, path)
        except OSError:
            await asyncio.to_thread(tmp_path.unlink, True)
            raise
        logger.debug(f"Stored {len(encoded)} bytes under '{key}'")

    async def remove_item(self, key: str) -> None:
        path = self._path(key)
        await asyncio.to_thread(path.unlink, True)

    async def keys(self) -> List[str]:
        files = await asyncio.to_thread(self._key_files)
        return [path.name[:-len(self.SUFFIX)] for path in files]

    async def usage_bytes(self, exclude: Optional[str] = None) -> int:
        """Total bytes stored, optionally ignoring one key (the one being replaced)."""
        excluded_name = f"{exclude}{self.SUFFIX}" if exclude else None

        def _sum_sizes() -> int:
            return sum(
                path.stat().st_size
                for path in self._key_files()
                if path.name != excluded_name
            )

        return await asyncio.to_thread(_sum_sizes)
