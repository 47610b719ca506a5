"""BuckTrax configuration using Pydantic Settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BuckTraxConfig(BaseModel):
    """Thresholds for corridor mining, segment confidence and route synthesis."""

    # Corridor mining
    movement_time_window_minutes: int = Field(240, gt=0)
    max_movement_distance_meters: float = Field(2000.0, gt=0)
    camera_feature_proximity_meters: float = Field(100.0, ge=0)
    amplify_corridor_weights: bool = False  # weight ** 1.5 before averaging
    pattern_share_threshold: float = Field(0.3, ge=0, le=1)

    # Sighting aggregation
    sighting_window_minutes: int = Field(15, gt=0)

    # Limited-data warning
    minimum_sightings_threshold: int = Field(5, ge=0)
    minimum_transitions_threshold: int = Field(2, ge=0)
    show_limited_data_warning: bool = True

    # Feature-aware routing
    enable_feature_aware_routing: bool = True
    minimum_distance_for_feature_routing: float = Field(200.0, ge=0)
    maximum_detour_percentage: float = Field(0.3, ge=0)
    maximum_waypoints_per_route: int = Field(2, ge=0)


class BuckTraxSettings(BaseSettings):
    """Application settings. Loads from .env file and environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "BuckTrax API"
    debug: bool = False

    # Database; falls back to SQLite under data/ when unset
    database_url: Optional[str] = None

    # Logging
    log_dir: str = "logs"
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    bucktrax: BuckTraxConfig = BuckTraxConfig()


@lru_cache
def get_settings() -> BuckTraxSettings:
    return BuckTraxSettings()
