"""Installation of plugins and themes from GitHub archives."""

import logging
import shutil
import zipfile
from pathlib import Path
from typing import Any

from github_updates.config_manager import ConfigManager, Settings
from github_updates.exceptions import (
    AuthRequiredError,
    ConfigError,
    DirectoryNotEmptyError,
    EntryPointNotFoundError,
    ExtractionError,
    FilesystemError,
    InstallError,
)
from github_updates.models import PACKAGE_TYPES, PLUGIN, THEME, InstallResult, RepositoryRegistration
from github_updates.package_downloader import PackageDownloader
from github_updates.release_resolver import ReleaseResolver
from github_updates.site import PLUGIN_HEADERS, Site, read_file_headers
from github_updates.utils import iso_date, sanitize_title

logger = logging.getLogger(__name__)

# GitHub archives wrap everything in one "owner-repo-sha/" directory; a root
# with more entries than this is not treated as such a wrapper
FLATTEN_MAX_ENTRIES = 3


def visible_entries(directory: Path) -> list[Path]:
    """Entries of ``directory`` whose names do not start with a dot."""
    return sorted(entry for entry in directory.iterdir() if not entry.name.startswith("."))


def flatten_wrapper_directory(target_dir: Path) -> bool:
    """Move the contents of a single wrapper directory up into ``target_dir``.

    Triggers only when the visible top level holds exactly one directory and
    at most ``FLATTEN_MAX_ENTRIES`` entries in total. Entries whose name
    already exists at the top level are left where they are.

    Returns:
        True if the wrapper directory was flattened
    """
    entries = visible_entries(target_dir)
    directories = [entry for entry in entries if entry.is_dir()]
    if len(directories) != 1 or len(entries) > FLATTEN_MAX_ENTRIES:
        return False

    wrapper = directories[0]
    logger.info(f"Flattening wrapper directory {wrapper.name}")
    for item in sorted(wrapper.iterdir()):
        destination = target_dir / item.name
        if destination.exists():
            logger.warning(f"Skipping {item.name}: already exists in {target_dir}")
            continue
        shutil.move(str(item), str(destination))

    if any(wrapper.iterdir()):
        logger.warning(f"Left non-empty wrapper directory {wrapper} in place")
    else:
        wrapper.rmdir()
    return True


class Installer:
    """Installs plugins and themes from GitHub into a site.

    The installer never removes a target directory on its own; callers use
    ``cleanup_empty_directory`` after a failure if they want the slot back.
    """

    def __init__(
        self,
        settings: Settings,
        site: Site,
        resolver: ReleaseResolver,
        downloader: PackageDownloader,
        config_manager: ConfigManager | None = None,
    ):
        self.settings = settings
        self.site = site
        self.resolver = resolver
        self.client = resolver.client
        self.downloader = downloader
        self.config_manager = config_manager

    def target_dir(self, package_type: str, slug: str) -> Path:
        root = self.site.plugins_dir if package_type == PLUGIN else self.site.themes_dir
        return root / slug

    def install(
        self,
        package_type: str,
        owner: str,
        repo: str,
        download_url: str | None = None,
        slug: str | None = None,
        activate: bool = False,
    ) -> InstallResult:
        """Download a repository archive and install it into the site.

        Args:
            package_type: "plugin" or "theme"
            owner: Repository owner or organization
            repo: Repository name
            download_url: Archive URL; resolved from the latest release when omitted
            slug: Directory name; derived from the repository name when omitted
            activate: Activate the plugin or switch to the theme afterwards

        Returns:
            InstallResult describing what was installed

        Raises:
            InstallError: For any install failure (see subclasses)
            GitHubUpdatesError: If release resolution or the download fails
        """
        if package_type not in PACKAGE_TYPES:
            raise InstallError("Invalid installation type.")
        if not owner or not repo:
            raise InstallError("Required parameters are missing.")

        slug = sanitize_title(slug or repo)
        if not slug:
            raise InstallError(f"Cannot derive a directory name from {repo!r}")
        target_dir = self.target_dir(package_type, slug)

        self._prepare_target(target_dir, slug)

        if not download_url:
            download_url = self.resolver.download_url(owner, repo)
        logger.info(f"Using download URL: {download_url}")

        if self.client.url_requires_auth(download_url) and not self.settings.has_token:
            raise AuthRequiredError(
                "This repository requires a GitHub token for access. "
                "Please configure your GitHub token in the settings.",
                target_dir=str(target_dir),
            )

        archive = self.downloader.fetch(download_url)
        try:
            self.extract(archive, target_dir)
        finally:
            archive.unlink(missing_ok=True)

        flatten_wrapper_directory(target_dir)

        if package_type == PLUGIN:
            return self._finish_plugin(target_dir, slug, activate)
        return self._finish_theme(target_dir, slug, activate)

    def _prepare_target(self, target_dir: Path, slug: str) -> None:
        if target_dir.exists():
            if not target_dir.is_dir() or visible_entries(target_dir):
                raise DirectoryNotEmptyError(
                    f'The directory "{slug}" already exists and is not empty. '
                    "Please choose a different name or remove the existing directory.",
                    target_dir=str(target_dir),
                )
            logger.info(f"Directory exists but is empty, proceeding: {target_dir}")
            return

        try:
            target_dir.mkdir(parents=True)
        except OSError as e:
            raise FilesystemError(
                f"Could not create directory: {target_dir}", target_dir=str(target_dir)
            ) from e
        logger.info(f"Created new directory: {target_dir}")

    def extract(self, archive: Path, target_dir: Path) -> None:
        logger.info(f"Extracting package to: {target_dir}")
        try:
            with zipfile.ZipFile(archive) as zf:
                zf.extractall(target_dir)
        except (zipfile.BadZipFile, OSError) as e:
            raise ExtractionError(
                f"Failed to extract package: {e}", target_dir=str(target_dir)
            ) from e

    def find_plugin_file(self, target_dir: Path, slug: str) -> str | None:
        """Return ``slug/file.php`` for the first top-level file with a plugin header."""
        for path in sorted(target_dir.glob("*.php")):
            if read_file_headers(path, PLUGIN_HEADERS)["Name"]:
                return f"{slug}/{path.name}"
        return None

    def _finish_plugin(self, target_dir: Path, slug: str, activate: bool) -> InstallResult:
        main_file = self.find_plugin_file(target_dir, slug)
        if not main_file:
            raise EntryPointNotFoundError(
                "Could not find the main plugin file.", target_dir=str(target_dir)
            )

        if activate:
            self.site.activate_plugin(main_file)

        message = (
            "Plugin installed and activated successfully."
            if activate
            else "Plugin installed successfully."
        )
        return InstallResult(
            type=PLUGIN,
            slug=slug,
            target_dir=str(target_dir),
            message=message,
            file=main_file,
            activated=activate,
        )

    def _finish_theme(self, target_dir: Path, slug: str, activate: bool) -> InstallResult:
        if not (target_dir / "style.css").is_file():
            raise EntryPointNotFoundError(
                "Could not find the theme's style.css file.", target_dir=str(target_dir)
            )

        if activate:
            self.site.switch_theme(slug)

        message = (
            "Theme installed and activated successfully."
            if activate
            else "Theme installed successfully."
        )
        return InstallResult(
            type=THEME,
            slug=slug,
            target_dir=str(target_dir),
            message=message,
            activated=activate,
        )

    def cleanup_empty_directory(self, directory: str | Path) -> bool:
        """Remove a directory that holds nothing but hidden entries.

        Returns:
            True if the directory is gone, False if it has visible contents
        """
        directory = Path(directory)
        if not directory.exists():
            return True
        if visible_entries(directory):
            return False

        for item in directory.iterdir():
            if item.is_dir() and not item.is_symlink():
                shutil.rmtree(item)
            else:
                item.unlink()
        directory.rmdir()
        logger.info(f"Removed empty directory {directory}")
        return True

    def add_to_repository_list(
        self, package_type: str, owner: str, name: str, slug: str = "", file: str = ""
    ) -> bool:
        """Register an installed package for update checks."""
        if self.config_manager is None:
            return False
        try:
            registration = RepositoryRegistration(
                type=package_type, owner=owner, name=name, slug=slug, file=file
            )
        except ConfigError as e:
            logger.warning(f"Not registering {owner}/{name}: {e}")
            return False

        self.config_manager.add_repository(registration)
        return True

    def search_repository(self, owner: str, name: str) -> dict[str, Any]:
        """Summarize a repository and its latest release before installing it."""
        repository = self.client.get_repository(owner, name)
        release = self.resolver.latest_release(owner, name)

        return {
            "name": repository.name,
            "description": repository.description,
            "version": release.version,
            "author": repository.owner_login,
            "stars": repository.stargazers_count,
            "updated_at": iso_date(repository.updated_at),
            "release_notes": release.body,
            "download_url": release.zipball_url,
            "has_wiki": repository.has_wiki,
            "license": repository.license_name or "Unknown",
        }
