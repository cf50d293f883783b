"""Application configuration loader.

Loads configuration from data/config/kindle_vocab.yaml with fallback to
built-in defaults. The KINDLE_VOCAB_DB environment variable overrides the
database path.

Usage:
    from kindle_vocab.config.app_config import load_app_config

    config = load_app_config()
    store = VocabStore(config.db_path)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog
import yaml

from kindle_vocab.db.database import DEFAULT_DB_PATH

logger = structlog.get_logger(__name__)

# Config file path (relative to working directory)
CONFIG_FILE = Path("data/config/kindle_vocab.yaml")

DB_PATH_ENV = "KINDLE_VOCAB_DB"


@dataclass
class AppConfig:
    """Application-wide configuration."""

    db_path: Path = DEFAULT_DB_PATH
    confirm_deletes: bool = True


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "database": {
            "path": str(DEFAULT_DB_PATH),
        },
        "cli": {
            "confirm_deletes": True,
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    database = data.get("database") or {}
    cli = data.get("cli") or {}

    return AppConfig(
        db_path=Path(database.get("path", DEFAULT_DB_PATH)).expanduser(),
        confirm_deletes=bool(cli.get("confirm_deletes", True)),
    )


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    config = _parse_config(data)

    env_path = os.environ.get(DB_PATH_ENV)
    if env_path:
        logger.debug("db_path_from_env", path=env_path)
        config.db_path = Path(env_path).expanduser()

    _cached_config = config
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
