"""Wiring of the components and the host hooks they serve."""

import logging
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import requests

from github_updates.config_manager import ConfigManager, Settings
from github_updates.events import EventObserver
from github_updates.exceptions import AuthRequiredError
from github_updates.github_client import GitHubClient
from github_updates.installer import Installer
from github_updates.models import UpdateTransient
from github_updates.package_downloader import PackageDownloader
from github_updates.release_resolver import ReleaseResolver
from github_updates.site import Site
from github_updates.updater import UpdateChecker
from github_updates.utils import is_github_url

logger = logging.getLogger(__name__)


class GitHubUpdates:
    """Builds every component from one settings object and exposes the hooks.

    Attributes:
        settings: Settings shared by all components
        client: GitHub API client
        resolver: Release resolver
        downloader: Authenticated archive downloader
        installer: Plugin/theme installer
        updater: Update checker for registered repositories
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        site: Site,
        settings: Settings | None = None,
        session: requests.Session | None = None,
        observer: EventObserver | None = None,
    ):
        self.config_manager = config_manager
        self.site = site
        self.settings = settings or config_manager.load_settings()

        self.client = GitHubClient(self.settings, session=session, observer=observer)
        self.resolver = ReleaseResolver(self.client)
        self.downloader = PackageDownloader(
            self.settings, session=self.client.session, observer=self.client.observer
        )
        self.installer = Installer(
            self.settings, site, self.resolver, self.downloader, config_manager
        )
        self.updater = UpdateChecker(site, self.resolver, config_manager.get_repositories())

    def pre_download(self, result: Any, package: str) -> Any:
        """Take over the download of GitHub-hosted packages.

        Args:
            result: What the host would use otherwise (usually False)
            package: Package URL the host is about to fetch

        Returns:
            Path to the downloaded archive for GitHub URLs when a token is
            configured, otherwise ``result`` unchanged

        Raises:
            AuthRequiredError: For api.github.com packages without a token
            GitHubUpdatesError: If the authenticated download fails
        """
        if not is_github_url(package):
            return result

        logger.info(f"Intercepting GitHub download: {package}")
        if self.settings.has_token:
            path: Path = self.downloader.fetch(package)
            logger.info(f"Downloaded with authentication to: {path}")
            return path

        if urlparse(package).hostname == "api.github.com":
            raise AuthRequiredError(
                "This GitHub API URL requires authentication. "
                "Please configure your GitHub token in the settings."
            )

        logger.info("No authentication token available, leaving the download to the host")
        return result

    def check_updates(self) -> tuple[UpdateTransient, UpdateTransient]:
        """Run the plugin and theme update checks against the installed site."""
        plugins = self.updater.check_plugin_updates(
            UpdateTransient(checked=self.site.installed_plugins())
        )
        themes = self.updater.check_theme_updates(
            UpdateTransient(checked=self.site.installed_themes())
        )
        return plugins, themes
