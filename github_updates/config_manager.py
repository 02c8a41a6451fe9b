"""Persisted configuration: settings, registered repositories and activity log."""

import logging
import os
import re
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from github_updates import __version__
from github_updates.config import (
    DEFAULT_CONFIG_PATH,
    ENV_CONFIG_PATH,
    ENV_GITHUB_TOKEN,
    ENV_LOG_LEVEL,
    get_env_var,
)
from github_updates.exceptions import ConfigError
from github_updates.models import RepositoryRegistration

logger = logging.getLogger(__name__)

LOG_LEVELS = ("debug", "info", "warning", "error")
ZIP_CHECKS = ("structural", "signature")

_CLASSIC_TOKEN = re.compile(r"^[a-f0-9]{40}$", re.IGNORECASE)
_PREFIXED_TOKEN = re.compile(r"^(?:ghp_[A-Za-z0-9]{36}|github_pat_[A-Za-z0-9_]{22,})$")


def is_plausible_token(token: str) -> bool:
    """Check a token against the classic and prefixed GitHub token formats."""
    return bool(_CLASSIC_TOKEN.match(token) or _PREFIXED_TOKEN.match(token))


@dataclass
class Settings:
    """Runtime settings injected into every component.

    Attributes:
        github_token: Personal access token; empty means public access only
        log_level: Minimum level kept in the activity log
        api_url: Base URL of the GitHub REST API
        user_agent: User-Agent header sent with every request
        request_timeout: Timeout for API calls in seconds
        download_timeout: Timeout for archive downloads in seconds
        zip_check: "structural" (zipfile CRC check) or "signature" (magic bytes)
    """

    github_token: str = ""
    log_level: str = "error"
    api_url: str = "https://api.github.com"
    user_agent: str = f"github-updates/{__version__}"
    request_timeout: int = 10
    download_timeout: int = 60
    zip_check: str = "structural"

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Settings":
        data = data or {}
        known = {f.name for f in fields(cls)}
        settings = cls(**{key: value for key, value in data.items() if key in known})
        settings.github_token = (settings.github_token or "").strip()
        settings.log_level = (settings.log_level or "error").lower()
        settings.api_url = (settings.api_url or cls.api_url).rstrip("/")

        if settings.log_level not in LOG_LEVELS:
            raise ConfigError(f"Invalid log level: {settings.log_level}")
        if settings.zip_check not in ZIP_CHECKS:
            raise ConfigError(f"Invalid zip check: {settings.zip_check}")
        return settings

    @property
    def has_token(self) -> bool:
        return bool(self.github_token)


@dataclass
class ConfigDocument:
    settings: Settings = field(default_factory=Settings)
    repositories: list[RepositoryRegistration] = field(default_factory=list)
    logs: list[dict[str, Any]] = field(default_factory=list)


class ConfigManager:
    """Loads and saves the YAML configuration document.

    The document holds three sections: ``settings``, the ``repositories``
    registered for updates and the recent ``logs``. Environment variables
    (``GITHUB_TOKEN``, ``LOG_LEVEL``) override stored settings on load but are
    never written back.

    Attributes:
        config_path: Path to the YAML document
    """

    def __init__(self, config_path: str | None = None) -> None:
        path = config_path or get_env_var(ENV_CONFIG_PATH, DEFAULT_CONFIG_PATH)
        self.config_path = Path(path).expanduser()

    def _read(self) -> dict[str, Any]:
        if not self.config_path.exists():
            return {}
        try:
            with open(self.config_path) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Could not read configuration {self.config_path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration {self.config_path} must be a mapping")
        return data

    def _write(self, data: dict[str, Any]) -> None:
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w") as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
            os.chmod(self.config_path, 0o600)
        except OSError as e:
            raise ConfigError(f"Could not write configuration {self.config_path}: {e}") from e

    def load(self) -> ConfigDocument:
        """Load the whole document.

        Returns:
            ConfigDocument with settings, registrations and log entries

        Raises:
            ConfigError: If the file is unreadable or holds invalid entries
        """
        data = self._read()
        return ConfigDocument(
            settings=Settings.from_dict(data.get("settings")),
            repositories=[
                RepositoryRegistration.from_dict(item)
                for item in data.get("repositories") or []
            ],
            logs=list(data.get("logs") or []),
        )

    def load_settings(self) -> Settings:
        """Load settings with environment overrides applied."""
        settings = self.load().settings
        token = get_env_var(ENV_GITHUB_TOKEN)
        if token:
            settings.github_token = token.strip()
        log_level = get_env_var(ENV_LOG_LEVEL).lower()
        if log_level in LOG_LEVELS:
            settings.log_level = log_level
        return settings

    def save_settings(self, settings: Settings) -> None:
        if settings.github_token and not is_plausible_token(settings.github_token):
            logger.warning("The GitHub token format appears to be invalid.")

        data = self._read()
        stored = asdict(settings)
        # The User-Agent carries the running version
        stored.pop("user_agent")
        data["settings"] = stored
        self._write(data)

    def get_repositories(self) -> list[RepositoryRegistration]:
        return self.load().repositories

    def add_repository(self, registration: RepositoryRegistration) -> list[RepositoryRegistration]:
        data = self._read()
        repositories = list(data.get("repositories") or [])
        repositories.append(registration.to_dict())
        data["repositories"] = repositories
        self._write(data)
        logger.info(
            f"Registered {registration.type} {registration.owner}/{registration.name}"
        )
        return [RepositoryRegistration.from_dict(item) for item in repositories]

    def remove_repository(self, index: int) -> RepositoryRegistration:
        """Remove a registration by its position in the list.

        Raises:
            ConfigError: If the index is negative or out of range
        """
        if index < 0:
            raise ConfigError("Invalid repository index.")

        data = self._read()
        repositories = list(data.get("repositories") or [])
        if index >= len(repositories):
            raise ConfigError("Repository not found.")

        removed = RepositoryRegistration.from_dict(repositories.pop(index))
        data["repositories"] = repositories
        self._write(data)
        logger.info(f"Removed repository {removed.owner}/{removed.name}")
        return removed

    def get_logs(self) -> list[dict[str, Any]]:
        return list(self._read().get("logs") or [])

    def save_logs(self, logs: list[dict[str, Any]]) -> None:
        data = self._read()
        data["logs"] = logs
        self._write(data)

    def purge(self) -> None:
        """Remove stored settings, registrations and logs."""
        if self.config_path.exists():
            self.config_path.unlink()
            logger.info(f"Deleted configuration {self.config_path}")
