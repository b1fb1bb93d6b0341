"""
Tests for the production server settings.
"""

import runpy
from pathlib import Path

import pytest

CONF_PATH = Path(__file__).resolve().parent.parent / "gunicorn.conf.py"


@pytest.fixture
def settings(monkeypatch):
    for name in ("PORT", "HOST", "THREADS"):
        monkeypatch.delenv(name, raising=False)
    return runpy.run_path(str(CONF_PATH))


def test_single_threaded_worker(settings):
    assert settings["workers"] == 1
    assert settings["worker_class"] == "gthread"
    assert settings["bind"] == "0.0.0.0:3000"


def test_only_service_settings(settings):
    for name in ("umask", "user", "group", "tmp_upload_dir", "pidfile", "daemon"):
        assert name not in settings


def test_bot_lifecycle_hooks(settings):
    assert callable(settings["post_worker_init"])
    assert callable(settings["worker_exit"])
