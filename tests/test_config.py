"""
Tests for configuration selection and token validation.
"""

import importlib
from unittest.mock import patch

import pytest

import config
from config import (
    PLACEHOLDER_TOKEN,
    Config,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    get_config,
)


class TestGetConfig:
    def test_named_environments(self):
        assert get_config("production") is ProductionConfig
        assert get_config("testing") is TestingConfig
        assert get_config("development") is DevelopmentConfig

    def test_unknown_falls_back_to_base(self):
        assert get_config("staging") is Config

    def test_default_is_base_config(self, monkeypatch):
        monkeypatch.delenv("FLASK_ENV", raising=False)
        assert get_config() is Config

    def test_reads_flask_env(self, monkeypatch):
        monkeypatch.setenv("FLASK_ENV", "production")
        assert get_config() is ProductionConfig


class TestValidate:
    def test_missing_token(self):
        assert TestingConfig.validate() is False

    def test_placeholder_token(self):
        with patch.object(Config, "DISCORD_TOKEN", PLACEHOLDER_TOKEN):
            assert Config.validate() is False

    def test_real_token(self):
        with patch.object(Config, "DISCORD_TOKEN", "MTIz.abc.def"):
            assert Config.validate() is True


class TestDefaults:
    def test_upload_limits(self):
        assert Config.MAX_CONTENT_LENGTH == (Config.MAX_UPLOAD_FILES * Config.MAX_UPLOAD_MB + 1) * 1024 * 1024
        assert "mp4" in Config.VIDEO_EXTENSIONS
        assert "png" in Config.IMAGE_EXTENSIONS

    def test_print_config_hides_token(self, capsys):
        with patch.object(Config, "DISCORD_TOKEN", "MTIz.abc.secret123"):
            Config.print_config()
        out = capsys.readouterr().out
        assert "***ret123" in out
        assert "MTIz.abc" not in out


@pytest.fixture
def fresh_config(monkeypatch):
    """Re-import config with a clean environment."""
    for name in ("FLASK_ENV", "DEBUG", "PORT", "HOST"):
        monkeypatch.delenv(name, raising=False)
    yield importlib.reload(config)
    monkeypatch.undo()
    importlib.reload(config)


class TestEnvironmentDefaults:
    def test_debug_off_without_env(self, fresh_config):
        selected = fresh_config.get_config()
        assert selected is fresh_config.Config
        assert selected.DEBUG is False
        assert selected.PORT == 3000

    def test_debug_from_env(self, fresh_config, monkeypatch):
        monkeypatch.setenv("DEBUG", "true")
        reloaded = importlib.reload(fresh_config)
        assert reloaded.get_config().DEBUG is True
