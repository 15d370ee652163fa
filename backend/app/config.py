"""Application configuration from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    emojigrid_env: str = "development"
    emojigrid_log_level: str = "info"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Layer defaults, overridable per request
    default_cell_size: int = 18
    default_resolution: int = 4
    default_tolerance: float = 0.5
    color_key_stride: int = 10

    # Optional shortcode table replacing the bundled one
    shortcodes_file: str = ""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
