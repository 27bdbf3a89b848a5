# Path: config/settings.py
# Purpose: Provide typed application configuration models.
# Layer: config.
# Details: Centralizes settings for the repository database, image limits, cache lifetimes, and logging.

import os
from pathlib import Path
from typing import List

from pydantic import BaseModel, Field

ENV_PREFIX = "IMAGE_REPO_"


class CacheSettings(BaseModel):
    """Time-to-live values (seconds) for cached catalog views."""

    products: int = Field(default=30 * 60, description="Lifetime of cached product listings.")
    categories: int = Field(default=60 * 60, description="Lifetime of cached category listings.")
    strains: int = Field(default=60 * 60, description="Lifetime of cached strain listings.")
    inventory: int = Field(default=30 * 60, description="Lifetime of cached inventory snapshots.")


class AppSettings(BaseModel):
    """Top-level application settings shared across services and interfaces."""

    database_path: Path = Field(
        default=Path("storage/db/repository.sqlite3"),
        description="Path to the SQLite database holding repository images and matching rules.",
    )
    max_image_size_mb: float = Field(default=10, description="Largest accepted repository image payload.")
    supported_mime_types: List[str] = Field(
        default_factory=lambda: ["image/jpeg", "image/png", "image/webp"],
        description="Mime types accepted for repository images.",
    )
    thumbnail_size: int = Field(default=160, description="Bounding box (pixels) of generated thumbnails.")
    cache: CacheSettings = Field(default_factory=CacheSettings)
    log_level: str = Field(default="INFO", description="Verbosity level for application logs.")

    @property
    def max_image_size_bytes(self) -> int:
        """Return the image size limit in bytes."""

        return int(self.max_image_size_mb * 1024 * 1024)

    @classmethod
    def from_env(cls) -> "AppSettings":
        """Instantiate settings, applying ``IMAGE_REPO_*`` environment overrides when present."""

        overrides = {}
        database_path = os.environ.get(f"{ENV_PREFIX}DATABASE_PATH")
        if database_path:
            overrides["database_path"] = Path(database_path)
        max_size = os.environ.get(f"{ENV_PREFIX}MAX_IMAGE_SIZE_MB")
        if max_size:
            overrides["max_image_size_mb"] = float(max_size)
        log_level = os.environ.get(f"{ENV_PREFIX}LOG_LEVEL")
        if log_level:
            overrides["log_level"] = log_level.upper()
        return cls(**overrides)


__all__ = ["AppSettings", "CacheSettings"]
