"""Resolution of the release and archive URL to install for a repository."""

import logging
from urllib.parse import quote

from github_updates.exceptions import GitHubAPIError, GitHubUpdatesError, NoDownloadURLError
from github_updates.github_client import GitHubClient
from github_updates.models import Release
from github_updates.utils import is_tag_shaped

logger = logging.getLogger(__name__)

# Statuses GitHub uses for "no release published" and "not visible to you"
NO_RELEASE_STATUSES = (403, 404)

PUBLIC_ARCHIVE_URL = "https://github.com/{owner}/{repo}/archive/refs/{kind}/{ref}.zip"


class ReleaseResolver:
    """Finds the most appropriate downloadable artifact for a repository.

    Two fallback chains exist: a repository without releases resolves to its
    default branch, and a release without a zip asset resolves to its zipball
    or a constructed zipball URL.
    """

    def __init__(self, client: GitHubClient):
        self.client = client
        self.observer = client.observer

    def latest_release(self, owner: str, repo: str) -> Release:
        """Get the latest release, or a synthetic one for the default branch.

        Args:
            owner: Repository owner or organization
            repo: Repository name

        Returns:
            Release from GitHub, or a synthetic release whose tag is the
            default branch when the repository publishes no releases

        Raises:
            GitHubUpdatesError: The original releases/latest error when the
                fallback does not apply or the repository is inaccessible
        """
        try:
            return self.client.get_latest_release(owner, repo)
        except GitHubAPIError as e:
            if e.status not in NO_RELEASE_STATUSES:
                raise
            original_error = e

        self.observer.fallback_taken(
            "default_branch",
            f"No releases available for {owner}/{repo} "
            f"(HTTP {original_error.status}), falling back to default branch",
        )

        try:
            repository = self.client.get_repository(owner, repo)
        except GitHubUpdatesError:
            raise original_error

        if not repository.default_branch:
            raise original_error

        branch = repository.default_branch
        logger.info(f"Using default branch {branch} for {owner}/{repo}")
        return Release(
            tag_name=branch,
            name=f"Latest from {branch}",
            body="Using latest code from default branch.",
            zipball_url=self.client.zipball_url(owner, repo, branch),
            tarball_url=self.client.tarball_url(owner, repo, branch),
            published_at=repository.updated_at,
            html_url=repository.html_url,
            assets=[],
            synthetic=True,
        )

    def download_url(self, owner: str, repo: str, version: str | None = None) -> str:
        """Pick the archive URL to download.

        Without ``version`` the order is: zip asset (API URL when a token is
        configured, else the browser URL), release zipball, constructed
        zipball for the tag. If the latest release cannot be resolved at all,
        the default branch zipball is used directly.

        Args:
            owner: Repository owner or organization
            repo: Repository name
            version: Explicit tag or branch; skips release resolution

        Returns:
            URL of a ZIP archive

        Raises:
            GitHubUpdatesError: If neither the release nor the repository
                metadata can be fetched
            NoDownloadURLError: If the release yields no usable URL
        """
        if version:
            return self._constructed_url(owner, repo, version)

        try:
            release = self.latest_release(owner, repo)
        except GitHubUpdatesError as e:
            logger.warning(f"Failed to get latest release for {owner}/{repo}: {e}")
            repository = self.client.get_repository(owner, repo)
            if not repository.default_branch:
                raise NoDownloadURLError(
                    f"Repository {owner}/{repo} has no default branch"
                ) from e
            self.observer.fallback_taken(
                "default_branch_zipball",
                f"Using default branch {repository.default_branch} of {owner}/{repo}",
            )
            return self.client.zipball_url(owner, repo, repository.default_branch)

        return self.release_download_url(owner, repo, release)

    def release_download_url(self, owner: str, repo: str, release: Release) -> str:
        asset = release.find_zip_asset()
        if asset is not None:
            # Private repository assets are only reachable through the API URL
            if self.client.settings.has_token and asset.url:
                logger.info(f"Using asset API URL for authenticated download: {asset.url}")
                return asset.url
            if asset.browser_download_url:
                return asset.browser_download_url

        if release.zipball_url:
            self.observer.fallback_taken("zipball", release.zipball_url)
            return release.zipball_url

        if release.tag_name:
            url = self.client.zipball_url(owner, repo, release.tag_name)
            self.observer.fallback_taken("constructed_zipball", url)
            return url

        raise NoDownloadURLError("No download URL found in release information")

    def _constructed_url(self, owner: str, repo: str, version: str) -> str:
        if self.client.settings.has_token:
            return self.client.zipball_url(owner, repo, version)

        kind = "tags" if is_tag_shaped(version) else "heads"
        return PUBLIC_ARCHIVE_URL.format(
            owner=quote(owner), repo=quote(repo), kind=kind, ref=quote(version)
        )
