"""Application configuration."""

import os
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from hotspot_editor.services.limits import EditLimits
from hotspot_editor.services.retouch import MAX_HOTSPOTS_PER_REQUEST

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    max_edits_per_image: int = 3
    # A phase is submitted as one retouch request.
    max_hotspots_per_session: int = Field(default=2, ge=1, le=MAX_HOTSPOTS_PER_REQUEST)
    max_total_hotspots_per_session: int = 6
    max_sessions: int = 3
    edge_margin: float = 2.0
    min_hotspot_spacing: float = 8.0
    color_cache_size: int = 50
    color_sample_max_dimension: int = 1024
    color_sample_size: int = 3
    color_light_threshold: float = 140.0
    color_refresh_delay_seconds: float = 0.1
    drag_click_grace_seconds: float = 0.1
    max_reference_bytes: int = 10 * 1024 * 1024
    retouch_backend: Literal["http", "openai"] = "http"
    retouch_base_url: str = "http://localhost:3000/api"
    retouch_api_key: str | None = None
    retouch_poll_interval_seconds: float = 1.0
    retouch_max_polls: int = 60
    upload_base_url: str = "http://localhost:3000/api"
    openai_api_key: str | None = None
    openai_image_model: str = "gpt-image-1"
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    def edit_limits(self) -> EditLimits:
        """Return the configured edit caps."""
        return EditLimits(
            max_edits_per_image=self.max_edits_per_image,
            max_hotspots_per_session=self.max_hotspots_per_session,
            max_total_hotspots_per_session=self.max_total_hotspots_per_session,
            max_sessions=self.max_sessions,
        )

    @property
    def uses_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)
