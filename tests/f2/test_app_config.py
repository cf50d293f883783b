"""Tests for app configuration (F2).

Tests config loading from YAML, defaults and the environment override.
"""

from pathlib import Path

import pytest

from kindle_vocab.config import app_config
from kindle_vocab.config.app_config import (
    AppConfig,
    clear_config_cache,
    load_app_config,
)
from kindle_vocab.db.database import DEFAULT_DB_PATH


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point CONFIG_FILE at tmp_path and clear env/cache."""
    monkeypatch.setattr(app_config, "CONFIG_FILE", tmp_path / "kindle_vocab.yaml")
    monkeypatch.delenv("KINDLE_VOCAB_DB", raising=False)
    clear_config_cache()
    yield tmp_path / "kindle_vocab.yaml"
    clear_config_cache()


class TestLoadAppConfig:
    """Tests for load_app_config function."""

    def test_defaults_without_file(self):
        """Missing file gives default config."""
        config = load_app_config()

        assert isinstance(config, AppConfig)
        assert config.db_path == DEFAULT_DB_PATH
        assert config.confirm_deletes is True

    def test_load_config_from_yaml(self, isolated_config):
        """Values come from the YAML file."""
        isolated_config.write_text(
            "database:\n  path: /tmp/kindle/vocab.db\ncli:\n  confirm_deletes: false\n",
            encoding="utf-8",
        )

        config = load_app_config()

        assert config.db_path == Path("/tmp/kindle/vocab.db")
        assert config.confirm_deletes is False

    def test_empty_yaml_uses_defaults(self, isolated_config):
        """An empty file falls back to defaults."""
        isolated_config.write_text("", encoding="utf-8")

        config = load_app_config()

        assert config.db_path == DEFAULT_DB_PATH

    def test_env_overrides_path(self, isolated_config, monkeypatch):
        """KINDLE_VOCAB_DB wins over the file."""
        isolated_config.write_text("database:\n  path: /from/file.db\n", encoding="utf-8")
        monkeypatch.setenv("KINDLE_VOCAB_DB", "/from/env.db")

        config = load_app_config()

        assert config.db_path == Path("/from/env.db")

    def test_config_is_cached(self, isolated_config):
        """Second call returns the cached object until force_reload."""
        first = load_app_config()
        isolated_config.write_text("database:\n  path: /changed.db\n", encoding="utf-8")

        assert load_app_config() is first
        assert load_app_config(force_reload=True).db_path == Path("/changed.db")
