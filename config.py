"""
config.py

Centralized configuration management using pydantic-settings.
All modules must import settings from this file.
Direct os.getenv() calls are prohibited elsewhere.

The edge policy document (thresholds, windowing, debounce, severity) is a
separate JSON file loaded once at startup via load_edge_config().
"""

from pathlib import Path

import structlog
from pydantic import ValidationError
from pydantic_settings import BaseSettings

from edge.schemas import EdgeConfig

logger = structlog.get_logger(__name__)


class ConfigError(Exception):
    """Raised when the edge policy document is missing or malformed."""


class Settings(BaseSettings):
    """Application-wide settings loaded from .env file."""

    # Edge policy document
    edge_config_path: str = "config/thresholds.json"

    # History store
    history_db_url: str = "sqlite:///edge_history.db"
    history_enabled: bool = True

    # Connectivity state at startup
    start_online: bool = True

    # Logging
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


def load_edge_config(path: str | Path) -> EdgeConfig:
    """
    Read and validate the edge policy document.

    Raises ConfigError on a missing file, malformed JSON or schema violation.
    The core assumes the returned config is complete; there is no fallback.
    """
    config_path = Path(path)
    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read edge config {config_path}: {exc}") from exc

    try:
        config = EdgeConfig.model_validate_json(raw)
    except ValidationError as exc:
        raise ConfigError(f"invalid edge config {config_path}: {exc}") from exc

    logger.info(
        "edge_config_loaded",
        path=str(config_path),
        window_size=config.window_size,
        debounce_ms=config.debounce_ms,
        measurement_types=sorted(config.plausible_ranges),
    )
    return config


settings = Settings()
