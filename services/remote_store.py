"""
Remote Store Adapter - project CRUD against the hosted projects table.

The remote is treated as unreliable: every call returns a StoreResult and
database or network errors come back as FAILED rather than exceptions.
"""
import logging
from typing import Any, Dict, List, Protocol, runtime_checkable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from crud.project import ProjectRepository
from database_models import ProjectRow
from models.project import Project, project_from_record, project_to_remote_values, to_remote_columns
from models.results import StoreResult

logger = logging.getLogger(__name__)

# Database, network and bad-row failures all count as "remote unavailable"
REMOTE_ERRORS = (SQLAlchemyError, OSError, ValueError)


@runtime_checkable
class RemoteProjectStore(Protocol):
    """Protocol for the remote project table."""

    configured: bool

    async def list_all(self) -> StoreResult:
        """All projects newest first: OK(list), EMPTY or FAILED."""
        ...

    async def get_by_id(self, project_id: str) -> StoreResult:
        ...

    async def insert(self, project: Project) -> StoreResult:
        """Insert a project; the remote assigns the id. OK(Project) echoes the stored row."""
        ...

    async def insert_many(self, projects: List[Project]) -> StoreResult:
        ...

    async def update(self, project_id: str, values: Dict[str, Any]) -> StoreResult:
        ...

    async def delete(self, project_id: str) -> StoreResult:
        ...


class NotConfiguredProjectStore:
    """Stand-in used when no DATABASE_URL is set; nothing is ever attempted."""

    configured = False

    async def list_all(self) -> StoreResult:
        return StoreResult.not_configured()

    async def get_by_id(self, project_id: str) -> StoreResult:
        return StoreResult.not_configured()

    async def insert(self, project: Project) -> StoreResult:
        return StoreResult.not_configured()

    async def insert_many(self, projects: List[Project]) -> StoreResult:
        return StoreResult.not_configured()

    async def update(self, project_id: str, values: Dict[str, Any]) -> StoreResult:
        return StoreResult.not_configured()

    async def delete(self, project_id: str) -> StoreResult:
        return StoreResult.not_configured()


def _to_project(row: ProjectRow) -> Project:
    project = project_from_record(row.to_record())
    if project is None:
        raise ValueError(f"Remote row {row.id} is not a valid project")
    return project


class SqlProjectStore:
    """Remote project store backed by an async SQLAlchemy session factory."""

    configured = True

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def list_all(self) -> StoreResult:
        try:
            async with self.session_factory() as session:
                rows = await ProjectRepository(session).list_projects()
        except REMOTE_ERRORS as e:
            logger.error(f"Remote: error fetching projects: {e}")
            return StoreResult.failed(str(e))

        projects = []
        for row in rows:
            project = project_from_record(row.to_record())
            if project is None:
                logger.warning(f"Remote: skipping invalid row {row.id}")
                continue
            projects.append(project)

        logger.info(f"Remote: fetched {len(projects)} projects")
        if not projects:
            return StoreResult.empty()
        return StoreResult.success(projects)

    async def get_by_id(self, project_id: str) -> StoreResult:
        try:
            async with self.session_factory() as session:
                row = await ProjectRepository(session).get_project(project_id)
                if row is None:
                    return StoreResult.not_found(project_id)
                return StoreResult.success(_to_project(row))
        except REMOTE_ERRORS as e:
            logger.error(f"Remote: error fetching project {project_id}: {e}")
            return StoreResult.failed(str(e))

    async def insert(self, project: Project) -> StoreResult:
        try:
            async with self.session_factory() as session:
                row = await ProjectRepository(session).create_project(project_to_remote_values(project))
                await session.commit()
                created = _to_project(row)
        except REMOTE_ERRORS as e:
            logger.error(f"Remote: error creating project '{project.title}': {e}")
            return StoreResult.failed(str(e))

        logger.info(f"Remote: project created with id {created.id}")
        return StoreResult.success(created)

    async def insert_many(self, projects: List[Project]) -> StoreResult:
        """Insert several projects in one transaction: all or nothing."""
        try:
            async with self.session_factory() as session:
                repo = ProjectRepository(session)
                rows = [await repo.create_project(project_to_remote_values(project)) for project in projects]
                await session.commit()
                created = [_to_project(row) for row in rows]
        except REMOTE_ERRORS as e:
            logger.error(f"Remote: error inserting {len(projects)} projects: {e}")
            return StoreResult.failed(str(e))
        return StoreResult.success(created)

    async def update(self, project_id: str, values: Dict[str, Any]) -> StoreResult:
        try:
            async with self.session_factory() as session:
                repo = ProjectRepository(session)
                row = await repo.get_project(project_id)
                if row is None:
                    return StoreResult.not_found(project_id)
                row = await repo.update_project(row, to_remote_columns(values))
                await session.commit()
                updated = _to_project(row)
        except REMOTE_ERRORS as e:
            logger.error(f"Remote: error updating project {project_id}: {e}")
            return StoreResult.failed(str(e))
        return StoreResult.success(updated)

    async def delete(self, project_id: str) -> StoreResult:
        try:
            async with self.session_factory() as session:
                repo = ProjectRepository(session)
                row = await repo.get_project(project_id)
                if row is None:
                    return StoreResult.not_found(project_id)
                await repo.delete_project(row)
                await session.commit()
        except REMOTE_ERRORS as e:
            logger.error(f"Remote: error deleting project {project_id}: {e}")
            return StoreResult.failed(str(e))
        return StoreResult.success(True)
