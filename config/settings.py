"""
Configuration settings for the application
"""
import json
from pathlib import Path
from typing import Annotated, Any, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Default browser-style storage budget (5MB)
DEFAULT_STORAGE_QUOTA_BYTES = 5 * 1024 * 1024

PRIMARY_STORAGE_KEY = "portfolio_projects"
BACKUP_STORAGE_KEY = "portfolio_projects_backup"

# Older builds of the site kept projects under these keys
LEGACY_STORAGE_KEYS = ["dynamic_portfolio_projects"]

# Titles that survived the last manual cleanup of local storage
KNOWN_PROJECT_TITLES = [
    "HYPAR PORTABLES",
    "R&E - BioFoam Thermal Performance",
    "R&E – BioFoam Thermal Performance",
    "Blasters Park: Multi-Functional Stadium Complex",
    "KHC-HOSPITAL",
    "WOOD-ID",
    "Flow-SIGHT",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Remote project table (unset = remote store not configured)
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")

    # Local cache storage
    local_storage_dir: Path = Field(default=Path("./local_storage"), alias="LOCAL_STORAGE_DIR")
    local_storage_quota_bytes: int = Field(default=DEFAULT_STORAGE_QUOTA_BYTES, alias="LOCAL_STORAGE_QUOTA_BYTES")
    primary_storage_key: str = Field(default=PRIMARY_STORAGE_KEY, alias="PRIMARY_STORAGE_KEY")
    backup_storage_key: str = Field(default=BACKUP_STORAGE_KEY, alias="BACKUP_STORAGE_KEY")

    # Data recovery
    recovery_legacy_keys: Annotated[List[str], NoDecode] = Field(default_factory=lambda: list(LEGACY_STORAGE_KEYS), alias="RECOVERY_LEGACY_KEYS")
    recovery_allowed_titles: Annotated[List[str], NoDecode] = Field(default_factory=lambda: list(KNOWN_PROJECT_TITLES), alias="RECOVERY_ALLOWED_TITLES")
    recovery_filter_enabled: bool = Field(default=True, alias="RECOVERY_FILTER_ENABLED")

    # Owner authentication
    jwt_secret_key: Optional[str] = Field(default=None, alias="JWT_SECRET_KEY")
    owner_email: Optional[str] = Field(default=None, alias="OWNER_EMAIL")
    owner_password_hash: Optional[str] = Field(default=None, alias="OWNER_PASSWORD_HASH")
    owner_user_id: str = Field(default="owner", alias="OWNER_USER_ID")

    # Frontend configuration
    frontend_url: Optional[str] = Field(default="http://localhost:5173", alias="FRONTEND_URL")

    # Render.com deployment configuration
    render: Optional[str] = Field(default=None, alias="RENDER")

    # Environment configuration
    env: Optional[str] = Field(default=None, alias="ENV")

    @field_validator("recovery_legacy_keys", "recovery_allowed_titles", mode="before")
    @classmethod
    def split_list(cls, value: Any) -> Any:
        """Accept a JSON array or a comma-separated string from the environment"""
        if not isinstance(value, str):
            return value
        if value.strip().startswith("["):
            return json.loads(value)
        return [item.strip() for item in value.split(",") if item.strip()]


# Instantiate settings object
settings = Settings()

# Determine if we're in production mode
IS_PRODUCTION = bool(settings.render) or bool(settings.env and settings.env.lower() == "production")
