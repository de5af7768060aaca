"""
Exceptions raised by the project storage layer
"""


class ProjectStoreError(Exception):
    """Base class for project storage errors."""
    pass


class QuotaExceededError(ProjectStoreError):
    """Local storage has no room left for the value being written."""

    def __init__(self, key: str, required: int, available: int):
        self.key = key
        self.required = required
        self.available = available
        super().__init__(
            f"Storage quota exceeded writing '{key}': need {required} bytes, {available} available"
        )


class LocalStorageExhaustedError(ProjectStoreError):
    """Local persistence failed even after stripping embedded images."""
    pass
