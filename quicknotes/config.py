"""Quick Notes configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings

DEFAULT_STORAGE_PATH = Path.home() / ".quicknotes" / "preferences.json"


class Settings(BaseSettings):
    """Application settings loaded from the environment or a .env file."""

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "QUICKNOTES_",
    }

    # Persistence
    storage_backend: Literal["file", "memory", "redis"] = "file"
    storage_path: Path = DEFAULT_STORAGE_PATH
    storage_key: str = "quickNotes"

    # Redis
    redis_url: str = "redis://localhost:6379"
    redis_prefix: str = "quicknotes:"

    # Display
    preview_limit: int = 20

    # MCP server
    server_host: str = "0.0.0.0"
    server_port: int = 8001

    log_level: str = "INFO"


settings = Settings()
