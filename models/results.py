"""
Result variants returned by the storage adapters
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class StoreStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    NOT_CONFIGURED = "not_configured"
    FAILED = "failed"
    NOT_FOUND = "not_found"
    QUOTA_EXCEEDED = "quota_exceeded"


@dataclass(frozen=True)
class StoreResult:
    """
    Outcome of a single storage call.

    Adapters return one of these instead of raising, so the sync layer can
    decide per status whether to fall back, merge or give up.
    """
    status: StoreStatus
    value: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == StoreStatus.OK

    @classmethod
    def success(cls, value: Any = None) -> "StoreResult":
        return cls(StoreStatus.OK, value=value)

    @classmethod
    def empty(cls) -> "StoreResult":
        return cls(StoreStatus.EMPTY, value=[])

    @classmethod
    def not_configured(cls) -> "StoreResult":
        return cls(StoreStatus.NOT_CONFIGURED, error="remote store not configured")

    @classmethod
    def failed(cls, error: str) -> "StoreResult":
        return cls(StoreStatus.FAILED, error=error)

    @classmethod
    def not_found(cls, project_id: str) -> "StoreResult":
        return cls(StoreStatus.NOT_FOUND, error=f"project {project_id} not found")

    @classmethod
    def quota_exceeded(cls, error: str) -> "StoreResult":
        return cls(StoreStatus.QUOTA_EXCEEDED, error=error)
