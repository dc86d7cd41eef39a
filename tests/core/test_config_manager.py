#!/usr/bin/env python3
"""Tests for the ConfigManager module."""

from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from modsync.core.config import (
    ConfigError,
    ConfigManager,
    ConfigSource,
    get_config_manager,
    set_global_config,
)
from modsync.core.constants import ConfigKey, ErrorCode


class TestConfigSource:
    """Tests for ConfigSource enum."""

    def test_precedence_order(self):
        """Test config source precedence ordering."""
        sources = list(ConfigSource)
        assert sources[0] == ConfigSource.COMPILED_DEFAULTS
        assert sources[-1] == ConfigSource.RUNTIME
        for i in range(len(sources) - 1):
            assert sources[i].value < sources[i + 1].value


class TestConfigError:
    """Tests for ConfigError exception."""

    def test_config_error_creation(self):
        error = ConfigError("Test error", ErrorCode.NOT_FOUND)
        assert error.message == "Test error"
        assert error.error_code == ErrorCode.NOT_FOUND
        assert str(error) == "Test error"

    def test_config_error_default_code(self):
        assert ConfigError("Test error").error_code == ErrorCode.INVALID_INPUT


class TestConfigManager:
    """Tests for ConfigManager."""

    def test_compiled_defaults(self):
        """Defaults are available without any file."""
        config = ConfigManager(environ={})
        assert config.get(ConfigKey.DEFAULT_VISIBILITY) == "pub"
        assert config.get(ConfigKey.DEBOUNCE_DELAY) == 0.5
        assert config.get(ConfigKey.IGNORE_DIRS) == ["target", ".git"]

    def test_get_missing_returns_default(self):
        config = ConfigManager(environ={})
        assert config.get("modsync.nothing.here") is None
        assert config.get("modsync.nothing.here", 42) == 42

    def test_load_file(self, temp_dir: Path):
        config_file = temp_dir / "config.yaml"
        config_file.write_text(yaml.safe_dump({"modsync": {"defaults": {"sort": "alpha"}}}))

        config = ConfigManager(str(config_file), environ={})

        assert config.get(ConfigKey.DEFAULT_SORT) == "alpha"
        assert config.get(ConfigKey.DEFAULT_VISIBILITY) == "pub"

    def test_load_missing_file(self, temp_dir: Path):
        config = ConfigManager(environ={})
        with pytest.raises(ConfigError) as exc_info:
            config.load_file(str(temp_dir / "missing.yaml"))
        assert exc_info.value.error_code == ErrorCode.NOT_FOUND

    def test_load_invalid_yaml(self, temp_dir: Path):
        config_file = temp_dir / "bad.yaml"
        config_file.write_text("modsync: [unclosed")

        config = ConfigManager(environ={})
        with pytest.raises(ConfigError) as exc_info:
            config.load_file(str(config_file))
        assert exc_info.value.error_code == ErrorCode.INVALID_INPUT

    def test_load_non_mapping(self, temp_dir: Path):
        config_file = temp_dir / "list.yaml"
        config_file.write_text("- a\n- b\n")

        config = ConfigManager(environ={})
        with pytest.raises(ConfigError):
            config.load_file(str(config_file))

    def test_load_empty_file(self, temp_dir: Path):
        """An empty file is an empty layer."""
        config_file = temp_dir / "empty.yaml"
        config_file.write_text("")

        config = ConfigManager(environ={})
        config.load_file(str(config_file))
        assert config.get(ConfigKey.DEFAULT_FMT) == "disabled"

    def test_environment_nesting(self):
        """Double underscores separate nested keys."""
        config = ConfigManager(
            environ={
                "MODSYNC_TIMING__DEBOUNCE_DELAY": "1.5",
                "MODSYNC_DEFAULTS__VISIBILITY": "private",
                "MODSYNC_WATCH__RECURSIVE": "false",
                "OTHER_VARIABLE": "ignored",
            }
        )
        assert config.get(ConfigKey.DEBOUNCE_DELAY) == 1.5
        assert config.get(ConfigKey.DEFAULT_VISIBILITY) == "private"
        assert config.get(ConfigKey.RECURSIVE) is False

    def test_parse_env_value(self):
        config = ConfigManager(environ={})
        assert config._parse_env_value("true") is True
        assert config._parse_env_value("no") is False
        assert config._parse_env_value("3") == 3
        assert config._parse_env_value("0.25") == 0.25
        assert config._parse_env_value("alpha") == "alpha"

    def test_precedence(self, temp_dir: Path):
        """Higher sources win over lower ones."""
        config_file = temp_dir / "config.yaml"
        config_file.write_text("modsync:\n  timing:\n    debounce_delay: 1.0\n")

        config = ConfigManager(
            str(config_file), environ={"MODSYNC_TIMING__DEBOUNCE_DELAY": "2.0"}
        )
        assert config.get(ConfigKey.DEBOUNCE_DELAY) == 2.0

        config.load_dict({"modsync": {"timing": {"debounce_delay": 3.0}}}, ConfigSource.CLI_ARGS)
        assert config.get(ConfigKey.DEBOUNCE_DELAY) == 3.0

        config.set(ConfigKey.DEBOUNCE_DELAY, 4.0)
        assert config.get(ConfigKey.DEBOUNCE_DELAY) == 4.0

    def test_get_all_merges(self):
        config = ConfigManager(environ={})
        config.load_dict({"modsync": {"defaults": {"sort": "alpha"}}}, ConfigSource.CLI_ARGS)

        merged = config.get_all()

        assert merged["modsync"]["defaults"] == {
            "visibility": "pub",
            "sort": "alpha",
            "fmt": "disabled",
        }

    def test_clear_keeps_defaults(self):
        config = ConfigManager(environ={})
        config.set(ConfigKey.DEFAULT_SORT, "alpha")

        config.clear()

        assert config.get(ConfigKey.DEFAULT_SORT) == "none"

    def test_clear_single_source(self):
        config = ConfigManager(environ={})
        config.set(ConfigKey.DEFAULT_SORT, "alpha")
        config.load_dict({"modsync": {"defaults": {"fmt": "enabled"}}}, ConfigSource.CLI_ARGS)

        config.clear(ConfigSource.RUNTIME)

        assert config.get(ConfigKey.DEFAULT_SORT) == "none"
        assert config.get(ConfigKey.DEFAULT_FMT) == "enabled"

    def test_load_default_files(self, temp_dir: Path):
        user_file = temp_dir / "user.yaml"
        user_file.write_text("modsync:\n  defaults:\n    fmt: enabled\n")

        config = ConfigManager(environ={})
        with patch("modsync.core.config.SYSTEM_CONFIG_PATH", str(temp_dir / "none.yaml")), patch(
            "modsync.core.config.USER_CONFIG_PATH", str(user_file)
        ):
            config.load_default_files()

        assert config.get(ConfigKey.DEFAULT_FMT) == "enabled"


class TestGlobalConfig:
    """Tests for the global configuration manager."""

    def test_get_creates_once(self):
        set_global_config(None)
        try:
            first = get_config_manager()
            assert get_config_manager() is first
        finally:
            set_global_config(None)

    def test_set_global(self):
        config = ConfigManager(environ={})
        set_global_config(config)
        try:
            assert get_config_manager() is config
        finally:
            set_global_config(None)
