"""Shared fixtures for the test suite."""

from unittest.mock import Mock

import pytest

from github_updates.config_manager import ConfigManager, Settings
from github_updates.site import DirectorySite
from helpers import PREFIXED_TOKEN


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def token_settings():
    return Settings(github_token=PREFIXED_TOKEN)


@pytest.fixture
def session():
    return Mock()


@pytest.fixture
def config_manager(tmp_path, monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    return ConfigManager(str(tmp_path / "config" / "config.yaml"))


@pytest.fixture
def site(tmp_path):
    content_dir = tmp_path / "wp-content"
    (content_dir / "plugins").mkdir(parents=True)
    (content_dir / "themes").mkdir(parents=True)
    return DirectorySite(content_dir)
