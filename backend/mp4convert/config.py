"""
Server configuration.

Settings are read once from MP4CONVERT_* environment variables.
Every directory defaults to a location under the data directory.
"""

import os
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

ENV_PREFIX = "MP4CONVERT_"

# 2 GiB upload limit
DEFAULT_MAX_UPLOAD_BYTES = 2 * 1024 * 1024 * 1024

DEFAULT_HOST = "127.0.0.1"  # Localhost only by default
DEFAULT_PORT = 8085


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.environ.get(ENV_PREFIX + name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


class Settings(BaseModel):
    """Runtime settings for the conversion server."""

    model_config = ConfigDict(extra="forbid")

    data_dir: Path = Path("data")
    upload_dir: Path = Path("data/uploads")
    output_dir: Path = Path("data/converted")
    db_path: Path = Path("data/jobs.db")

    # URL prefix mapped onto output_dir
    public_prefix: str = "/converted"

    max_upload_bytes: int = Field(default=DEFAULT_MAX_UPLOAD_BYTES, gt=0)
    ffmpeg_path: Optional[str] = None

    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:5173"])
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"

    @classmethod
    def for_data_dir(cls, data_dir: Path, **overrides) -> "Settings":
        """Build settings with every path placed under data_dir."""
        data_dir = Path(data_dir)
        values = {
            "data_dir": data_dir,
            "upload_dir": data_dir / "uploads",
            "output_dir": data_dir / "converted",
            "db_path": data_dir / "jobs.db",
        }
        values.update(overrides)
        return cls(**values)

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Load settings from the environment.

        Unset variables fall back to defaults. Invalid values raise
        pydantic.ValidationError at startup.
        """
        data_dir = Path(_env("DATA_DIR", "data"))
        overrides = {}

        for field_name, env_name in (
            ("upload_dir", "UPLOAD_DIR"),
            ("output_dir", "OUTPUT_DIR"),
            ("db_path", "DB_PATH"),
        ):
            value = _env(env_name)
            if value:
                overrides[field_name] = Path(value)

        max_upload = _env("MAX_UPLOAD_BYTES")
        if max_upload:
            overrides["max_upload_bytes"] = max_upload

        origins = _env("CORS_ORIGINS")
        if origins:
            overrides["cors_origins"] = [o.strip() for o in origins.split(",") if o.strip()]

        for field_name, env_name in (
            ("ffmpeg_path", "FFMPEG_PATH"),
            ("host", "HOST"),
            ("port", "PORT"),
            ("log_level", "LOG_LEVEL"),
        ):
            value = _env(env_name)
            if value:
                overrides[field_name] = value

        return cls.for_data_dir(data_dir, **overrides)

    def ensure_directories(self) -> None:
        """Create upload, output and database directories."""
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
