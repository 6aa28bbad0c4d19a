"""
Unit tests for imgflow.core.config module.
"""

import logging

import pytest

from imgflow.core.config import (
    DEFAULT_CONFIG,
    PACKAGE_WORKFLOWS_DIR,
    Config,
    find_config_file,
    get_config,
    get_default_config,
    load_config,
    load_config_cascade,
    load_toml,
    reset_config,
    save_toml,
)
from imgflow.core.exceptions import ConfigError


class TestConfig:
    """Tests for Config class."""

    def test_default_config(self):
        """Test getting default configuration."""
        config = get_default_config()

        assert isinstance(config, Config)
        assert config.execution.get("parallel_jobs") == 4
        assert config.validation.get("strict") is False

    def test_config_get_set(self):
        """Test Config.get and Config.set."""
        config = get_default_config()

        assert config.get("paths", "output_dir") == "./output"
        assert config.get("paths", "nonexistent", "default") == "default"
        assert config.get("nosuchsection", "x", 1) == 1

        config.set("execution", "parallel_jobs", 8)
        assert config.get("execution", "parallel_jobs") == 8

    def test_default_not_shared(self):
        """Test that default configs do not share state."""
        config = get_default_config()
        config.set("paths", "output_dir", "/changed")

        assert DEFAULT_CONFIG["paths"]["output_dir"] == "./output"

    def test_catalog_dirs(self, tmp_path):
        """Test catalog directory properties."""
        config = get_default_config()
        assert config.builtin_catalog_dir == PACKAGE_WORKFLOWS_DIR

        config.set("catalog", "builtin_dir", str(tmp_path))
        assert config.builtin_catalog_dir == tmp_path
        assert "~" not in str(config.user_catalog_dir)

    def test_to_from_dict(self):
        """Test Config.to_dict and Config.from_dict."""
        data = {"paths": {"output_dir": "/out"}, "validation": {"strict": True}}
        config = Config.from_dict(data, source="test")

        assert config.paths["output_dir"] == "/out"
        assert config.to_dict()["validation"] == {"strict": True}
        assert config.catalog == {}


class TestTOMLOperations:
    """Tests for TOML load/save operations."""

    def test_save_and_load(self, temp_dir):
        """Test that save then load preserves data."""
        config = {
            "paths": {"output_dir": "./web", "temp_dir": "/tmp/x"},
            "execution": {"parallel_jobs": 2},
            "validation": {"strict": True},
            "catalog": {"builtin_dir": None},
        }
        filepath = temp_dir / "imgflow.toml"
        save_toml(config, filepath)

        loaded = load_toml(filepath)
        assert loaded["paths"]["output_dir"] == "./web"
        assert loaded["execution"]["parallel_jobs"] == 2
        assert loaded["validation"]["strict"] is True
        assert "catalog" not in loaded or "builtin_dir" not in loaded["catalog"]

    def test_load_missing(self, temp_dir):
        """Test loading a non-existent TOML file."""
        with pytest.raises(FileNotFoundError):
            load_toml(temp_dir / "nope.toml")

    def test_load_invalid(self, temp_dir):
        """Test loading a malformed TOML file."""
        path = temp_dir / "bad.toml"
        path.write_text("[paths\noutput_dir = ")

        with pytest.raises(ConfigError):
            load_toml(path)


class TestLoadConfig:
    """Tests for loading and cascading configuration."""

    def test_explicit_file_merged_over_defaults(self, temp_dir):
        """Test loading config from a specific file."""
        path = temp_dir / "custom.toml"
        path.write_text('[paths]\noutput_dir = "/srv/out"\n')

        config = load_config(str(path))
        assert config.get("paths", "output_dir") == "/srv/out"
        assert config.get("execution", "parallel_jobs") == 4
        assert config._source == str(path)

    def test_invalid_file_falls_back_to_defaults(self, temp_dir, caplog):
        """Test that a malformed config file falls back to defaults."""
        path = temp_dir / "bad.toml"
        path.write_text("not = [valid")

        with caplog.at_level(logging.WARNING, logger="imgflow"):
            config = load_config(str(path))
        assert config.get("paths", "output_dir") == "./output"
        assert "Error loading config file" in caplog.text

    def test_find_missing_explicit(self, temp_dir):
        """Test finding a config file that does not exist."""
        assert find_config_file(str(temp_dir / "missing.toml")) is None

    def test_cascade_explicit_wins(self, temp_dir, monkeypatch):
        """Test that the explicit file overrides the cascade."""
        monkeypatch.chdir(temp_dir)
        (temp_dir / "imgflow.toml").write_text('[paths]\noutput_dir = "cwd"\ntemp_dir = "cwd-tmp"\n')
        explicit = temp_dir / "explicit.toml"
        explicit.write_text('[paths]\noutput_dir = "explicit"\n')

        config = load_config_cascade(str(explicit))
        assert config.get("paths", "output_dir") == "explicit"
        assert config.get("paths", "temp_dir") == "cwd-tmp"


class TestGlobalConfig:
    """Tests for the global configuration instance."""

    def test_get_config_applies_log_level(self, temp_dir, monkeypatch):
        """Test that the global config applies the configured log level."""
        monkeypatch.chdir(temp_dir)
        (temp_dir / "imgflow.toml").write_text('[logging]\nlevel = "DEBUG"\n')
        reset_config()

        config = get_config()
        assert config.get("logging", "level") == "DEBUG"
        assert logging.getLogger("imgflow").level == logging.DEBUG
        logging.getLogger("imgflow").setLevel(logging.INFO)

    def test_isolated_config_in_use(self, isolated_config):
        """Test that tests run against the isolated config."""
        assert get_config() is isolated_config
