"""
ProjectRepository for database operations on the remote projects table
"""

from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from database_models import ProjectRow
from models.project import parse_timestamp

COLUMN_NAMES = {column.name for column in ProjectRow.__table__.columns}


def _column_values(values: Dict[str, Any]) -> Dict[str, Any]:
    """Keep known columns only and turn ISO timestamps into datetimes."""
    clean = {key: value for key, value in values.items() if key in COLUMN_NAMES}
    for key in ("created_at", "updated_at"):
        if isinstance(clean.get(key), str):
            parsed = parse_timestamp(clean[key])
            if parsed is None:
                clean.pop(key)
            else:
                clean[key] = parsed
    return clean


class ProjectRepository:
    """
    Repository class for ProjectRow database operations.
    Encapsulates all query logic for the remote projects table.
    """

    def __init__(self, db: AsyncSession):
        """
        Initialize the repository with a database session.

        Args:
            db: AsyncSession instance for database operations
        """
        self.db = db

    async def list_projects(self) -> List[ProjectRow]:
        """
        Retrieve every project, newest first.

        Returns:
            List of ProjectRow objects ordered by created_at descending
        """
        result = await self.db.execute(
            select(ProjectRow).order_by(ProjectRow.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_project(self, project_id: str) -> Optional[ProjectRow]:
        """
        Retrieve a project by ID.

        Args:
            project_id: Project ID

        Returns:
            ProjectRow if found, None otherwise
        """
        result = await self.db.execute(
            select(ProjectRow).where(ProjectRow.id == project_id)
        )
        return result.scalar_one_or_none()

    async def create_project(self, values: Dict[str, Any]) -> ProjectRow:
        """
        Insert a new project row.

        Args:
            values: Column values; unknown keys are ignored and the id is
                generated by the table when absent

        Returns:
            Created ProjectRow
        """
        row = ProjectRow(**_column_values(values))
        self.db.add(row)
        await self.db.flush()  # Flush to get defaults without committing
        await self.db.refresh(row)
        return row

    async def update_project(self, row: ProjectRow, values: Dict[str, Any]) -> ProjectRow:
        """
        Update project columns.

        Args:
            row: ProjectRow to update
            values: Column values to change (the id is never changed)

        Returns:
            Updated ProjectRow
        """
        for key, value in _column_values(values).items():
            if key != "id":
                setattr(row, key, value)

        await self.db.flush()
        await self.db.refresh(row)
        return row

    async def delete_project(self, row: ProjectRow) -> None:
        await self.db.delete(row)
        await self.db.flush()
