"""Update checks for registered plugins and themes."""

import logging
from dataclasses import dataclass
from typing import Any

from github_updates.exceptions import GitHubUpdatesError
from github_updates.models import (
    PLUGIN,
    THEME,
    PluginInfo,
    PluginUpdate,
    Release,
    RepositoryRegistration,
    ThemeInfo,
    ThemeUpdate,
    UpdateTransient,
)
from github_updates.release_resolver import ReleaseResolver
from github_updates.site import Site
from github_updates.utils import is_newer_version

logger = logging.getLogger(__name__)

PLUGIN_INFORMATION = "plugin_information"
THEME_INFORMATION = "theme_information"


@dataclass
class UpdateInfo:
    new_version: str
    url: str
    package: str


def package_url(release: Release) -> str | None:
    """The zipball, else the first asset served as application/zip."""
    if release.zipball_url:
        return release.zipball_url
    for asset in release.assets:
        if asset.content_type == "application/zip" and asset.browser_download_url:
            return asset.browser_download_url
    return None


class UpdateChecker:
    """Compares installed versions with the latest GitHub releases.

    Each registered repository is checked on its own with one or two API
    calls; a failure for one repository never stops the others.
    """

    def __init__(
        self,
        site: Site,
        resolver: ReleaseResolver,
        repositories: list[RepositoryRegistration],
    ):
        self.site = site
        self.resolver = resolver
        self.repositories = repositories

    def _latest_release(self, repo: RepositoryRegistration) -> Release | None:
        try:
            return self.resolver.latest_release(repo.owner, repo.name)
        except GitHubUpdatesError as e:
            logger.warning(f"Update check failed for {repo.owner}/{repo.name}: {e}")
            return None

    def get_update_info(
        self, repo: RepositoryRegistration, current_version: str
    ) -> UpdateInfo | None:
        """Describe the update for a repository, or None if there is none."""
        release = self._latest_release(repo)
        if release is None:
            return None

        if not is_newer_version(current_version, release.version):
            return None

        package = package_url(release)
        if not package:
            logger.info(f"No installable package in {repo.owner}/{repo.name} {release.tag_name}")
            return None

        return UpdateInfo(
            new_version=release.version,
            url=release.html_url or "",
            package=package,
        )

    def check_plugin_updates(self, transient: UpdateTransient) -> UpdateTransient:
        if not transient.checked:
            return transient

        for repo in self.repositories:
            if repo.type != PLUGIN or not repo.file:
                continue
            if not self.site.plugin_exists(repo.file):
                continue

            current_version = self.site.get_plugin_data(repo.file)["Version"]
            update = self.get_update_info(repo, current_version)
            if update is None:
                continue

            logger.info(f"Update available for {repo.file}: {current_version} -> {update.new_version}")
            transient.response[repo.file] = PluginUpdate(
                id=repo.file,
                slug=repo.plugin_slug,
                plugin=repo.file,
                new_version=update.new_version,
                url=update.url,
                package=update.package,
            )

        return transient

    def check_theme_updates(self, transient: UpdateTransient) -> UpdateTransient:
        if not transient.checked:
            return transient

        for repo in self.repositories:
            if repo.type != THEME or not repo.slug:
                continue
            theme_data = self.site.get_theme_data(repo.slug)
            if theme_data is None:
                continue

            current_version = theme_data["Version"]
            update = self.get_update_info(repo, current_version)
            if update is None:
                continue

            logger.info(f"Update available for theme {repo.slug}: {current_version} -> {update.new_version}")
            transient.response[repo.slug] = ThemeUpdate(
                theme=repo.slug,
                new_version=update.new_version,
                url=update.url,
                package=update.package,
            )

        return transient

    def plugins_api(self, result: Any, action: str, args: Any) -> Any:
        """Serve plugin information for a registered plugin, else pass ``result`` on."""
        slug = getattr(args, "slug", None)
        if action != PLUGIN_INFORMATION or not slug:
            return result

        for repo in self.repositories:
            if repo.type == PLUGIN and repo.file and repo.plugin_slug == slug:
                return self.get_plugin_info(repo) or result
        return result

    def themes_api(self, result: Any, action: str, args: Any) -> Any:
        slug = getattr(args, "slug", None)
        if action != THEME_INFORMATION or not slug:
            return result

        for repo in self.repositories:
            if repo.type == THEME and repo.slug == slug:
                return self.get_theme_info(repo) or result
        return result

    def get_plugin_info(self, repo: RepositoryRegistration) -> PluginInfo | None:
        if not self.site.plugin_exists(repo.file):
            return None
        release = self._latest_release(repo)
        if release is None:
            return None

        data = self.site.get_plugin_data(repo.file)
        download_link = package_url(release) or ""
        return PluginInfo(
            name=data["Name"],
            slug=repo.plugin_slug,
            version=release.version,
            author=data["Author"],
            author_profile=data["AuthorURI"],
            requires=data["RequiresWP"],
            tested=data["TestedUpTo"],
            requires_php=data["RequiresPHP"],
            homepage=data["PluginURI"],
            download_link=download_link,
            trunk=download_link,
            last_updated=release.published_date,
            sections={
                "description": data["Description"],
                "changelog": release.body or "",
            },
        )

    def get_theme_info(self, repo: RepositoryRegistration) -> ThemeInfo | None:
        data = self.site.get_theme_data(repo.slug)
        if data is None:
            return None
        release = self._latest_release(repo)
        if release is None:
            return None

        return ThemeInfo(
            name=data["Name"],
            slug=repo.slug,
            version=release.version,
            author=data["Author"],
            author_profile=data["AuthorURI"],
            requires=data["RequiresWP"],
            tested=data["TestedUpTo"],
            requires_php=data["RequiresPHP"],
            homepage=data["ThemeURI"],
            download_link=package_url(release) or "",
            last_updated=release.published_date,
            sections={
                "description": data["Description"],
                "changelog": release.body or "",
            },
        )
