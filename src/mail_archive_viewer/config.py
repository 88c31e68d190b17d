"""Configuration management for Mail Archive Viewer.

This module handles application configuration using Pydantic settings.
Configuration can be loaded from environment variables or .env files.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with
    the MAIL_ARCHIVE_ prefix (e.g., MAIL_ARCHIVE_STORE_DB_PATH).
    """

    model_config = SettingsConfigDict(
        env_prefix="MAIL_ARCHIVE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Local store
    store_db_path: Path = Field(
        default=Path("mail_archive.sqlite3"),
        description="Path to the local SQLite database holding the imported archive",
    )

    # Archive layout
    manifest_filename: str = Field(
        default="export-index.json",
        description="Name of the optional top-level manifest entry",
    )
    messages_filename: str = Field(
        default="emails.json",
        description="Name of the per-folder messages document",
    )
    folder_info_filename: str = Field(
        default="folder-info.json",
        description="Name of the optional per-folder metadata document",
    )
    attachments_dir: str = Field(
        default="attachments",
        description="Top-level archive directory holding attachment blobs",
    )

    # Import
    attachment_workers: int = Field(
        default=8,
        ge=1,
        description="Maximum number of attachment blobs extracted and stored concurrently",
    )
    attachment_write_retries: int = Field(
        default=2,
        ge=0,
        description="Retries for an attachment write that hits a locked database",
    )

    # Browsing
    message_list_limit: int = Field(
        default=50,
        description="Default number of messages listed by the CLI",
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
