"""Error taxonomy for GitHub requests, downloads and installs."""

from datetime import datetime
from typing import Any


class GitHubUpdatesError(Exception):
    """Base class for every expected failure.

    Attributes:
        code: Short machine-readable error code
        context: Structured details such as the HTTP status or URL
    """

    code = "github_updates_error"

    def __init__(self, message: str, code: str | None = None, **context: Any):
        if code is not None:
            self.code = code
        self.context = context
        super().__init__(message)

    @property
    def message(self) -> str:
        return str(self)


class ConfigError(GitHubUpdatesError):
    """Raised when configuration or a repository registration is invalid."""

    code = "config_error"


class TransportError(GitHubUpdatesError):
    """Raised when the HTTP request itself fails (DNS, TLS, timeout)."""

    code = "http_request_failed"


class GitHubAPIError(GitHubUpdatesError):
    """Raised for a non-200 response from the GitHub API."""

    code = "github_api_error"

    def __init__(
        self,
        message: str,
        status: int,
        body: str = "",
        url: str | None = None,
        code: str | None = None,
    ):
        self.status = status
        self.body = body
        super().__init__(message, code=code, status=status, url=url)


class RateLimitError(GitHubAPIError):
    """Raised when GitHub answers 403 with no remaining rate limit."""

    code = "github_rate_limit_exceeded"

    def __init__(self, reset: datetime | None, body: str = "", url: str | None = None):
        self.reset = reset
        reset_date = reset.strftime("%Y-%m-%d %H:%M:%S") if reset else "unknown"
        super().__init__(
            f"GitHub API rate limit exceeded. Resets at {reset_date}.",
            status=403,
            body=body,
            url=url,
        )


class InvalidResponseError(GitHubUpdatesError):
    """Raised when a GitHub response cannot be parsed into the expected shape."""

    code = "invalid_response"


class DownloadError(GitHubUpdatesError):
    code = "github_download_error"


class NotFoundError(DownloadError):
    code = "not_found"


class AccessDeniedError(DownloadError):
    code = "access_denied"


class InvalidArchiveError(DownloadError):
    code = "invalid_archive"


class InstallError(GitHubUpdatesError):
    code = "install_failed"


class DirectoryNotEmptyError(InstallError):
    code = "directory_exists"


class FilesystemError(InstallError):
    code = "filesystem_error"


class ExtractionError(InstallError):
    code = "unzip_failed"


class AuthRequiredError(InstallError):
    code = "auth_required"


class NoDownloadURLError(GitHubUpdatesError):
    code = "no_download_url"


class EntryPointNotFoundError(InstallError):
    code = "entry_point_not_found"


class ActivationError(InstallError):
    code = "activation_failed"
