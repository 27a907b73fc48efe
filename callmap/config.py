"""Runtime settings, read from ``CALLMAP_*`` environment variables or ``.env``."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from callmap.core.normalizer import DEFAULT_EXTERNAL_OBJECTS


class Settings(BaseSettings):
    # Call targets rooted at these names are treated as platform calls
    external_objects: list[str] = Field(default_factory=lambda: sorted(DEFAULT_EXTERNAL_OBJECTS))

    # Files above this size (bytes) are not analyzed
    max_file_size: int = Field(default=1024 * 1024, gt=0)

    # Default hop limit for traces
    trace_depth: int = Field(default=5, ge=0)

    # Extra glob patterns excluded from directory indexing
    exclude: list[str] = Field(default_factory=list)

    log_level: str = "WARNING"

    model_config = SettingsConfigDict(
        env_prefix="CALLMAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
