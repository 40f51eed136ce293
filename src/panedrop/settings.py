"""Settings for panedrop."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".panedrop"


@dataclass
class BrowserSettings:
    viewport_height: int = 10  # rows shown per pane


@dataclass
class ConnectionDefaults:
    protocol: str = "ftp"
    timeout: int = 5
    keepalive: int = 15  # seconds between liveness probes
    passive_mode: bool = True  # FTP only


@dataclass
class Settings:
    browser: BrowserSettings = field(default_factory=BrowserSettings)
    connection: ConnectionDefaults = field(default_factory=ConnectionDefaults)


def load_settings(config_dir: Path = DEFAULT_CONFIG_DIR) -> Settings:
    """Load settings from disk, returning defaults if the file doesn't exist."""
    settings_path = config_dir / "settings.json"
    if not settings_path.exists():
        return Settings()
    try:
        data = json.loads(settings_path.read_text(encoding="utf-8"))
        return _dict_to_settings(data)
    except Exception as e:
        logger.warning("Failed to load settings from %s: %s", settings_path, e)
        return Settings()


def _known_fields(cls: type, data: object) -> dict:
    if not isinstance(data, dict):
        return {}
    return {k: v for k, v in data.items() if k in cls.__dataclass_fields__}


def _dict_to_settings(data: dict) -> Settings:
    """Convert a dictionary to Settings, filling in defaults for missing keys."""
    return Settings(
        browser=BrowserSettings(**_known_fields(BrowserSettings, data.get("browser"))),
        connection=ConnectionDefaults(**_known_fields(ConnectionDefaults, data.get("connection"))),
    )
