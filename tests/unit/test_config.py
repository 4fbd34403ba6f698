"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from topic_harvest.config import (
    Config,
    ContinuationConfig,
    HarvesterConfig,
    get_config,
    load_config_from_yaml,
    reload_config,
)


class TestDefaults:
    """Tests for default configuration values."""

    def test_defaults(self):
        """Test the documented defaults."""
        config = Config()

        assert config.harvester.max_workers == 5
        assert config.harvester.sort_key_multiplier == 1000
        assert config.harvester.mode == "corpus"
        assert config.view.per_page == 20
        assert config.continuation.ttl_seconds == 120
        assert config.continuation.backend == "memory"

    def test_get_config_is_cached(self):
        """Test the global instance is reused."""
        assert get_config() is get_config()

    def test_reload_config(self, monkeypatch):
        """Test reloading picks up the environment."""
        first = get_config()
        monkeypatch.setenv("HARVESTER_MAX_WORKERS", "3")

        reloaded = reload_config()

        assert reloaded is not first
        assert reloaded.harvester.max_workers == 3


class TestValidation:
    """Tests for field validation."""

    def test_mode_is_normalized(self):
        """Test harvest mode is case-insensitive."""
        assert HarvesterConfig(mode=" Author ").mode == "author"

    def test_invalid_mode(self):
        """Test unknown harvest modes are rejected."""
        with pytest.raises(ValidationError):
            HarvesterConfig(mode="everything")

    def test_invalid_backend(self):
        """Test unknown continuation backends are rejected."""
        with pytest.raises(ValidationError):
            ContinuationConfig(backend="redis")

    def test_worker_bounds(self):
        """Test the worker pool size must be positive."""
        with pytest.raises(ValidationError):
            HarvesterConfig(max_workers=0)

    def test_env_override(self, monkeypatch):
        """Test environment variables fill nested sections."""
        monkeypatch.setenv("VIEW_PER_PAGE", "50")
        monkeypatch.setenv("CONTINUATION_BACKEND", "sqlite")

        config = Config()

        assert config.view.per_page == 50
        assert config.continuation.backend == "sqlite"


class TestYamlConfig:
    """Tests for load_config_from_yaml."""

    def test_load_yaml(self, tmp_path):
        """Test nested sections are read from YAML."""
        path = tmp_path / "config.yaml"
        path.write_text(
            "app_name: Custom\n"
            "harvester:\n"
            "  max_workers: 2\n"
            "  mode: author\n"
            "view:\n"
            "  per_page: 5\n",
            encoding="utf-8",
        )

        config = load_config_from_yaml(str(path))

        assert config.app_name == "Custom"
        assert config.harvester.max_workers == 2
        assert config.harvester.mode == "author"
        assert config.view.per_page == 5
        assert config.continuation.ttl_seconds == 120

    def test_empty_yaml(self, tmp_path):
        """Test an empty file gives defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert load_config_from_yaml(str(path)).harvester.max_workers == 5

    def test_missing_file(self, tmp_path):
        """Test a missing file raises."""
        with pytest.raises(FileNotFoundError):
            load_config_from_yaml(str(tmp_path / "nope.yaml"))
