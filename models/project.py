"""
Project catalog models and the pure helpers that shape them.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

# Fields that may legitimately be stored as null
NULLABLE_FIELDS = {"github_url", "live_url", "location", "duration", "team_size", "user_id"}

EMBEDDED_DATA_PREFIX = "data:"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def generate_slug(title: str) -> str:
    """Lowercase the title and collapse every non-alphanumeric run into a single hyphen."""
    return re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")


def parse_timestamp(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def later_timestamp(previous: Optional[str], now: str) -> str:
    """Return `now`, unless `previous` is already later (clock skew between stores)."""
    if not previous:
        return now
    previous_dt = parse_timestamp(previous)
    now_dt = parse_timestamp(now)
    if previous_dt and now_dt and previous_dt > now_dt:
        return previous
    return now


class Video(BaseModel):
    id: str
    title: str = ""
    url: str
    type: Literal["youtube", "drive"] = "youtube"
    description: Optional[str] = None


class Project(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    title: str = Field(min_length=1)
    slug: str = ""
    subtitle: str = ""
    description: str = ""
    content: str = ""
    image_url: str = ""
    project_images: List[str] = Field(default_factory=list)
    videos: List[Video] = Field(default_factory=list)
    technologies: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    featured: bool = False
    status: str = "published"
    github_url: Optional[str] = None
    live_url: Optional[str] = None
    location: Optional[str] = None
    duration: Optional[str] = None
    team_size: Optional[str] = None
    user_id: Optional[str] = None
    created_at: str = Field(default_factory=utc_now)
    updated_at: str = Field(default_factory=utc_now)


class ProjectCreate(BaseModel):
    """Payload for a new project; everything but the title is optional."""
    title: str = Field(min_length=1)
    slug: Optional[str] = None
    subtitle: str = ""
    description: str = ""
    content: str = ""
    image_url: str = ""
    project_images: List[str] = Field(default_factory=list)
    videos: List[Video] = Field(default_factory=list)
    technologies: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    featured: bool = False
    status: str = "published"
    github_url: Optional[str] = None
    live_url: Optional[str] = None
    location: Optional[str] = None
    duration: Optional[str] = None
    team_size: Optional[str] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title must not be empty")
        return value.strip()


class ProjectUpdate(BaseModel):
    """Partial update: only fields explicitly set are applied."""
    title: Optional[str] = None
    slug: Optional[str] = None
    subtitle: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    image_url: Optional[str] = None
    project_images: Optional[List[str]] = None
    videos: Optional[List[Video]] = None
    technologies: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    featured: Optional[bool] = None
    status: Optional[str] = None
    github_url: Optional[str] = None
    live_url: Optional[str] = None
    location: Optional[str] = None
    duration: Optional[str] = None
    team_size: Optional[str] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("title must not be empty")
        return value.strip() if value is not None else value

    def changes(self) -> Dict[str, Any]:
        """Explicitly-set fields, minus nulls for fields that cannot hold null."""
        return {
            key: value
            for key, value in self.model_dump(mode="json", exclude_unset=True).items()
            if value is not None or key in NULLABLE_FIELDS
        }


def build_project(project_id: str, data: ProjectCreate, user_id: Optional[str], now: str) -> Project:
    """Stamp a create payload into a full project record."""
    values = data.model_dump(mode="json")
    values["slug"] = generate_slug(values.get("slug") or data.title) or generate_slug(data.title)
    return Project.model_validate({
        **values,
        "id": project_id,
        "user_id": user_id,
        "created_at": now,
        "updated_at": now,
    })


def apply_update(project: Project, update: ProjectUpdate, now: Optional[str] = None) -> Project:
    """
    Merge a partial update into a project and return the new record.

    `id` and `created_at` never change. An explicit slug is normalized; an
    explicitly blank slug is re-derived from the (possibly new) title.
    `updated_at` never moves backwards.
    """
    changes = update.changes()
    merged = {**project.model_dump(mode="json"), **changes}
    if "slug" in changes:
        merged["slug"] = generate_slug(changes["slug"] or merged["title"])
    merged["id"] = project.id
    merged["created_at"] = project.created_at
    merged["updated_at"] = later_timestamp(project.updated_at, now or utc_now())
    return Project.model_validate(merged)


def strip_embedded_images(project: Project) -> Project:
    """Drop inline `data:` image payloads, keeping references to hosted images."""
    return project.model_copy(update={
        "image_url": "" if project.image_url.startswith(EMBEDDED_DATA_PREFIX) else project.image_url,
        "project_images": [
            image for image in project.project_images
            if not image.startswith(EMBEDDED_DATA_PREFIX)
        ],
    })


def _video_type(url: str) -> str:
    return "drive" if "drive.google.com" in url else "youtube"


def _normalize_videos(raw_videos: Any) -> List[Dict[str, Any]]:
    videos = []
    if not isinstance(raw_videos, list):
        return videos
    for index, item in enumerate(raw_videos):
        if isinstance(item, str) and item:
            videos.append({"id": f"video-{index + 1}", "title": "", "url": item, "type": _video_type(item)})
        elif isinstance(item, dict) and item.get("url"):
            video = dict(item)
            video["id"] = str(video.get("id") or f"video-{index + 1}")
            if video.get("type") not in ("youtube", "drive"):
                video["type"] = _video_type(video["url"])
            videos.append(video)
    return videos


def project_from_record(raw: Any) -> Optional[Project]:
    """
    Normalize a stored record (remote row or local blob entry) into a Project.

    Handles the field names used by older schemas: `images` for
    `project_images`, `project_url` for `live_url`, bare video URL strings,
    numeric ids and datetime timestamps. Returns None for anything that is
    not recognisably a project (no id or no title).
    """
    if not isinstance(raw, dict):
        return None
    data = {key: value for key, value in raw.items() if value is not None}
    title = data.get("title")
    if data.get("id") in (None, "") or not isinstance(title, str) or not title.strip():
        return None

    data["id"] = str(data["id"])
    if "user_id" in data:
        data["user_id"] = str(data["user_id"])

    images = data.pop("images", None)
    if not data.get("project_images") and images:
        data["project_images"] = images

    project_url = data.pop("project_url", None)
    if not data.get("live_url") and project_url:
        data["live_url"] = project_url

    data["videos"] = _normalize_videos(data.get("videos"))

    for field in ("created_at", "updated_at"):
        if isinstance(data.get(field), datetime):
            stamp = data[field]
            if stamp.tzinfo is None:
                stamp = stamp.replace(tzinfo=timezone.utc)
            data[field] = stamp.isoformat()

    if not data.get("slug"):
        data["slug"] = generate_slug(title)

    try:
        return Project.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Skipping malformed project record {data.get('id')}: {e.error_count()} validation errors")
        return None


def to_remote_columns(values: Dict[str, Any]) -> Dict[str, Any]:
    """Rename project fields to the remote table's column names."""
    columns = dict(values)
    if "project_images" in columns:
        columns["images"] = columns.pop("project_images")
    if "live_url" in columns:
        columns["project_url"] = columns.pop("live_url")
    return columns


def project_to_remote_values(project: Project) -> Dict[str, Any]:
    """Column values for the remote `projects` table (without the id)."""
    return to_remote_columns(project.model_dump(mode="json", exclude={"id"}))
