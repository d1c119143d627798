"""Konfigurations-Utilities für den Toggl-Cache."""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_BASE_URL = "https://api.track.toggl.com"
DEFAULT_REQUEST_TIMEOUT = 10
APP_DIR_NAME = "toggl-tracker"


def user_data_dir() -> Path:
    """Plattformabhängiges Datenverzeichnis des Benutzers."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA") or Path.home() / "AppData" / "Roaming")
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_DATA_HOME") or Path.home() / ".local" / "share")
    return base / APP_DIR_NAME


class Settings(BaseSettings):
    """Laufzeitkonfiguration, überschreibbar über ``TOGGL_*`` Umgebungsvariablen."""

    model_config = SettingsConfigDict(env_prefix="TOGGL_", env_file=".env", extra="ignore")

    api_base_url: str = DEFAULT_API_BASE_URL
    request_timeout: int = DEFAULT_REQUEST_TIMEOUT
    state_path: Path = Field(default_factory=lambda: user_data_dir() / "toggl.json")
    log_dir: Path = Field(default_factory=lambda: user_data_dir() / "logs")
    log_level: str = "INFO"
    log_to_console: bool = False


def load_config() -> Settings:
    """Lädt die Konfiguration aus einer optionalen `.env` Datei."""

    env_path = Path(__file__).resolve().parent.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path)
    return Settings()


__all__ = ["Settings", "load_config", "user_data_dir"]
