"""Authenticated download of GitHub archives with ZIP validation."""

import logging
import os
import tempfile
from pathlib import Path
from urllib.parse import urlparse

import requests

from github_updates import zip_validator
from github_updates.config_manager import Settings
from github_updates.events import EventObserver, LoggingObserver
from github_updates.exceptions import (
    AccessDeniedError,
    DownloadError,
    InvalidArchiveError,
    NotFoundError,
    TransportError,
)
from github_updates.github_client import (
    ACCEPT_JSON,
    API_VERSION,
    authorization_header,
    create_session,
)

logger = logging.getLogger(__name__)

ACCEPT_BINARY = "application/octet-stream"
REDIRECT_STATUSES = (301, 302)

# Headers that belong to GitHub only and must not reach a redirect target
GITHUB_ONLY_HEADERS = ("Authorization", "Accept", "X-GitHub-Api-Version")

TOKEN_PERMISSION_HINT = "not accessible by personal access token"


def is_private_asset_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.hostname == "api.github.com" and "/releases/assets/" in parsed.path


class PackageDownloader:
    """Downloads release archives to temporary files.

    There is no retry anywhere in the download path: every failure is
    terminal for the call and the temporary file is removed.
    """

    def __init__(
        self,
        settings: Settings,
        session: requests.Session | None = None,
        observer: EventObserver | None = None,
        download_dir: str | None = None,
    ):
        """Initialize the package downloader.

        Args:
            settings: Runtime settings holding the token and timeouts
            session: Optional pre-built requests session
            observer: Receives request/response/failure events
            download_dir: Directory for temporary files (default: system temp dir)
        """
        self.settings = settings
        self.session = session or create_session()
        self.observer = observer or LoggingObserver()
        self.download_dir = download_dir

    def build_headers(self, url: str) -> dict[str, str]:
        headers = {"User-Agent": self.settings.user_agent}

        if is_private_asset_url(url):
            headers["Accept"] = ACCEPT_BINARY
        else:
            headers["Accept"] = ACCEPT_JSON
            headers["X-GitHub-Api-Version"] = API_VERSION

        authorization = authorization_header(self.settings.github_token)
        if authorization:
            headers["Authorization"] = authorization
        return headers

    def fetch(self, url: str) -> Path:
        """Download ``url`` into a new temporary ZIP file.

        Args:
            url: Archive URL (asset, zipball or public archive URL)

        Returns:
            Path to the validated temporary file; the caller owns it

        Raises:
            TransportError: If the HTTP request fails
            NotFoundError: On HTTP 404
            AccessDeniedError: On HTTP 401/403
            DownloadError: On any other status or if the file cannot be written
            InvalidArchiveError: If the file is not a valid ZIP archive
        """
        headers = self.build_headers(url)
        response = self._get(url, headers, allow_redirects=False)

        location = response.headers.get("Location")
        if response.status_code in REDIRECT_STATUSES and location:
            logger.info(f"Following redirect to: {location}")
            response.close()
            redirect_headers = {
                key: value
                for key, value in headers.items()
                if key not in GITHUB_ONLY_HEADERS
            }
            response = self._get(location, redirect_headers, allow_redirects=True)

        try:
            if response.status_code != 200:
                self._raise_for_status(response, url)
            path = self._write_temp_file(response)
        finally:
            response.close()

        if not zip_validator.is_valid(path, self.settings.zip_check):
            path.unlink(missing_ok=True)
            error = InvalidArchiveError("Downloaded file is not a valid ZIP archive", url=url)
            self.observer.failure_raised(error)
            raise error

        logger.info(f"File downloaded successfully to: {path}")
        return path

    def _get(
        self, url: str, headers: dict[str, str], allow_redirects: bool
    ) -> requests.Response:
        self.observer.request_sent(url, "Authorization" in headers)
        try:
            response = self.session.get(
                url,
                headers=headers,
                timeout=self.settings.download_timeout,
                stream=True,
                allow_redirects=allow_redirects,
            )
        except requests.RequestException as e:
            error = TransportError(f"GitHub download failed: {e}", url=url)
            self.observer.failure_raised(error)
            raise error from e

        self.observer.response_received(url, response.status_code)
        return response

    def _raise_for_status(self, response: requests.Response, url: str) -> None:
        status = response.status_code
        try:
            data = response.json()
        except ValueError:
            data = None
        api_message = data.get("message", "") if isinstance(data, dict) else ""

        if status == 404:
            error_class = NotFoundError
            message = (
                "Repository or release not found. "
                "Check if the repository exists and is accessible."
            )
        elif status in (401, 403):
            error_class = AccessDeniedError
            if TOKEN_PERMISSION_HINT in api_message:
                message = (
                    "Access denied. Your GitHub token is missing required permissions. "
                    'For private repositories, please add "Contents: Read-only" '
                    "permission to your token at https://github.com/settings/tokens"
                )
            else:
                message = (
                    "Access denied. Your GitHub token may be invalid or missing required "
                    'permissions. For private repositories, ensure your token has '
                    '"Contents: Read-only" permission.'
                )
        else:
            error_class = DownloadError
            message = api_message or response.reason or "Unknown error"

        if api_message:
            logger.debug(f"GitHub API error message: {api_message}")

        error = error_class(
            f"GitHub download failed (HTTP {status}): {message}", status=status, url=url
        )
        self.observer.failure_raised(error)
        raise error

    def _write_temp_file(self, response: requests.Response) -> Path:
        """Stream the body into a temporary file and check it was written in full."""
        try:
            fd, name = tempfile.mkstemp(
                prefix="github-updates-", suffix=".zip", dir=self.download_dir
            )
        except OSError as e:
            raise DownloadError(f"Could not create temporary file for download: {e}") from e

        path = Path(name)
        written = 0
        try:
            with os.fdopen(fd, "wb") as f:
                # Write file in chunks to handle large archives
                for chunk in response.iter_content(chunk_size=8192):
                    if chunk:
                        f.write(chunk)
                        written += len(chunk)
        except (OSError, requests.RequestException) as e:
            path.unlink(missing_ok=True)
            error = DownloadError(f"Could not write downloaded file to disk: {e}")
            self.observer.failure_raised(error)
            raise error from e

        # Content-Length counts encoded bytes, iter_content yields decoded ones
        expected = response.headers.get("Content-Length")
        if response.headers.get("Content-Encoding"):
            expected = None
        incomplete = expected is not None and expected.isdigit() and int(expected) != written
        if written == 0 or incomplete:
            path.unlink(missing_ok=True)
            error = DownloadError(
                "Could not write downloaded file to disk", written=written, expected=expected
            )
            self.observer.failure_raised(error)
            raise error

        logger.debug(f"Wrote {written} bytes to {path}")
        return path
