"""Configuration for Byte-Size AI."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

_SECRET_ENV_VARS = ("OPENROUTER_API_KEY", "ADMIN_PASSWORD", "JWT_SECRET")


@dataclass(frozen=True)
class Config:
    """Application configuration."""

    openrouter_api_key: str = ""
    fal_api_key: str = ""
    admin_password: str = ""
    jwt_secret: str = ""
    data_dir: Path = field(default_factory=lambda: Path.home() / ".local" / "share" / "bytesize")
    snapshot_key: str = "default"
    port: int = 3001
    host: str = "127.0.0.1"
    cors_origins: tuple[str, ...] = ("http://localhost:5173",)
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    fal_base_url: str = "https://fal.run"
    referer: str = "http://localhost:5173"
    app_title: str = "Byte-Size AI Studio"
    owner_name: str = "Leonard van Rooyen"
    default_text_model: str = "openai/gpt-4o-mini"
    default_image_model: str = "google/gemini-2.5-flash-image-preview"
    default_video_model: str = "fal-ai/ovi"
    text_timeout: float = 60.0
    image_timeout: float = 120.0
    video_timeout: float = 300.0
    catalog_timeout: float = 30.0
    token_ttl_days: int = 7

    @property
    def db_path(self) -> Path:
        return self.data_dir / "data.sqlite"

    @classmethod
    def from_env(cls, **overrides: object) -> Config:
        """Build a config from process environment variables.

        Explicit keyword overrides win over the environment.
        """
        env = os.environ
        for name in _SECRET_ENV_VARS:
            if not env.get(name):
                logger.warning("%s is missing from environment", name)

        values: dict[str, object] = {
            "openrouter_api_key": env.get("OPENROUTER_API_KEY", ""),
            "fal_api_key": env.get("FAL_KEY", ""),
            "admin_password": env.get("ADMIN_PASSWORD", ""),
            "jwt_secret": env.get("JWT_SECRET", ""),
        }
        if data_dir := env.get("BYTESIZE_DATA_DIR"):
            values["data_dir"] = Path(data_dir).expanduser()
        if port := env.get("PORT"):
            try:
                values["port"] = int(port)
            except ValueError:
                logger.warning("Ignoring non-numeric PORT=%r", port)
        if host := env.get("HOST"):
            values["host"] = host
        if image_model := env.get("DEFAULT_IMAGE_MODEL"):
            values["default_image_model"] = image_model
        if origins := env.get("CORS_ORIGINS"):
            values["cors_origins"] = tuple(o.strip() for o in origins.split(",") if o.strip())

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)  # type: ignore[arg-type]
