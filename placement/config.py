"""Solver configuration and logging setup.

Uses pydantic-settings so every tunable can be overridden through
``PLACEMENT_*`` environment variables or a ``.env`` file.
"""

import logging
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class PlacementSettings(BaseSettings):
    """Placement solver settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PLACEMENT_",
        extra="ignore",
    )

    # Search
    step_px: int = Field(default=4, ge=1, le=64, description="Search grid resolution")
    max_radius_px: int = Field(default=640, ge=1, le=4096, description="Search bound")

    # Separation
    text_padding_px: float = Field(default=2.0, ge=0, description="Gap kept between text lines")
    content_padding_px: float = Field(default=40.0, ge=0, description="Inset of the allowed rect")

    # Mask sampling
    mask_sample_stride_px: int = Field(default=4, ge=1, description="Mask sampling stride")

    # Results
    move_epsilon_px: float = Field(default=0.5, ge=0, description="Smallest change reported as a move")

    # Interaction
    guide_threshold_px: float = Field(default=8.0, ge=0, description="Smart guide distance")

    log_level: str = "INFO"


@lru_cache()
def get_settings() -> PlacementSettings:
    """Get cached settings instance."""
    return PlacementSettings()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for command line use."""
    level_name = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
    )
