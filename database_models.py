import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import Column, String, Text, Boolean, DateTime, JSON
from database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


class ProjectRow(Base):
    """
    Remote `projects` table.
    Column names follow the hosted table: `images` holds the gallery and
    `project_url` the live link.
    """
    __tablename__ = "projects"

    id = Column(String(64), primary_key=True, default=_new_id)
    title = Column(String, nullable=False)
    slug = Column(String, nullable=False, default="", index=True)
    subtitle = Column(String, nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    content = Column(Text, nullable=False, default="")
    image_url = Column(Text, nullable=False, default="")
    images = Column(JSON, nullable=False, default=list)
    videos = Column(JSON, nullable=False, default=list)
    technologies = Column(JSON, nullable=False, default=list)
    tags = Column(JSON, nullable=False, default=list)
    featured = Column(Boolean, nullable=False, default=False)
    status = Column(String, nullable=False, default="published")
    github_url = Column(String, nullable=True)
    project_url = Column(String, nullable=True)
    location = Column(String, nullable=True)
    duration = Column(String, nullable=True)
    team_size = Column(String, nullable=True)
    user_id = Column(String, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    def to_record(self) -> Dict[str, Any]:
        return {column.name: getattr(self, column.name) for column in self.__table__.columns}
