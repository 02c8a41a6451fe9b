"""Client for the GitHub REST API."""

import logging
from typing import Any
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from github_updates.config_manager import Settings
from github_updates.events import EventObserver, LoggingObserver
from github_updates.exceptions import (
    GitHubAPIError,
    InvalidResponseError,
    RateLimitError,
    TransportError,
)
from github_updates.models import (
    AuthenticatedUser,
    RateLimitSnapshot,
    Release,
    Repository,
    SearchResults,
)
from github_updates.utils import is_github_url

logger = logging.getLogger(__name__)

API_VERSION = "2022-11-28"
ACCEPT_JSON = "application/vnd.github+json"

FINE_GRAINED_PREFIXES = ("ghp_", "github_pat_")


def authorization_header(token: str) -> str | None:
    """Pick the Authorization scheme from the token shape.

    Prefixed tokens (``ghp_``, ``github_pat_``) use ``Bearer``; every other
    non-empty token uses the classic ``token`` scheme.
    """
    if not token:
        return None
    if token.startswith(FINE_GRAINED_PREFIXES):
        return f"Bearer {token}"
    return f"token {token}"


def create_session() -> requests.Session:
    """Create a requests session that never retries.

    Returns:
        Session with a zero-retry adapter mounted for http and https
    """
    session = requests.Session()

    # A failed call is terminal; callers decide what to do next
    retry_strategy = Retry(total=0, raise_on_status=False)

    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    return session


class GitHubClient:
    """Issues authenticated requests to the GitHub REST API.

    Every response, successful or not, overwrites ``rate_limit`` with the
    rate-limit headers GitHub sent back.
    """

    def __init__(
        self,
        settings: Settings,
        session: requests.Session | None = None,
        observer: EventObserver | None = None,
    ):
        """Initialize the GitHub client.

        Args:
            settings: Runtime settings holding the token and API base URL
            session: Optional pre-built requests session
            observer: Receives request/response/failure events
        """
        self.settings = settings
        self.api_url = settings.api_url
        self.session = session or create_session()
        self.observer = observer or LoggingObserver()
        self.rate_limit = RateLimitSnapshot()

    def default_headers(self) -> dict[str, str]:
        headers = {
            "Accept": ACCEPT_JSON,
            "X-GitHub-Api-Version": API_VERSION,
            "User-Agent": self.settings.user_agent,
        }
        authorization = authorization_header(self.settings.github_token)
        if authorization:
            headers["Authorization"] = authorization
        return headers

    def request(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """Perform one GET against the API and decode the JSON body.

        Args:
            url: Full API URL
            params: Optional query parameters

        Returns:
            The decoded JSON document

        Raises:
            TransportError: If the HTTP request fails
            RateLimitError: On 403 with no remaining rate limit
            GitHubAPIError: On any other non-200 status
            InvalidResponseError: If the body is not valid JSON
        """
        self.observer.request_sent(url, self.settings.has_token)

        try:
            response = self.session.get(
                url,
                headers=self.default_headers(),
                params=params,
                timeout=self.settings.request_timeout,
            )
        except requests.RequestException as e:
            error = TransportError(f"GitHub API request failed: {e}", url=url)
            self.observer.failure_raised(error)
            raise error from e

        status = response.status_code
        self.observer.response_received(url, status)
        self.rate_limit = RateLimitSnapshot.from_headers(response.headers)

        if status == 403 and self.rate_limit.remaining == 0:
            error = RateLimitError(self.rate_limit.reset_at, body=response.text, url=url)
            self.observer.failure_raised(error)
            raise error

        if status != 200:
            message = self._error_message(response)
            error = GitHubAPIError(
                f"GitHub API error (HTTP {status}): {message}",
                status=status,
                body=response.text,
                url=url,
            )
            self.observer.failure_raised(error)
            raise error

        try:
            return response.json()
        except ValueError as e:
            error = InvalidResponseError("Invalid JSON response from GitHub API", url=url)
            self.observer.failure_raised(error)
            raise error from e

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and data.get("message"):
            return data["message"]
        return response.reason or "Unknown error"

    def _repo_url(self, owner: str, repo: str, suffix: str = "") -> str:
        return f"{self.api_url}/repos/{quote(owner)}/{quote(repo)}{suffix}"

    def test_connection(self) -> AuthenticatedUser:
        """Fetch the authenticated user, with the rate-limit snapshot attached."""
        user = AuthenticatedUser.from_api(self.request(f"{self.api_url}/user"))
        user.rate_limit = self.rate_limit
        return user

    def get_releases(self, owner: str, repo: str) -> list[Release]:
        data = self.request(self._repo_url(owner, repo, "/releases"))
        if not isinstance(data, list):
            raise InvalidResponseError("Expected a list of releases")
        return [Release.from_api(item) for item in data]

    def get_latest_release(self, owner: str, repo: str) -> Release:
        """GET /repos/{owner}/{repo}/releases/latest, without any fallback."""
        return Release.from_api(self.request(self._repo_url(owner, repo, "/releases/latest")))

    def get_repository(self, owner: str, repo: str) -> Repository:
        return Repository.from_api(self.request(self._repo_url(owner, repo)))

    def search_repositories(
        self, query: str, page: int = 1, per_page: int = 10
    ) -> SearchResults:
        data = self.request(
            f"{self.api_url}/search/repositories",
            params={"q": query, "page": page, "per_page": per_page},
        )
        return SearchResults.from_api(data)

    def zipball_url(self, owner: str, repo: str, ref: str) -> str:
        return self._repo_url(owner, repo, f"/zipball/{ref}")

    def tarball_url(self, owner: str, repo: str, ref: str) -> str:
        return self._repo_url(owner, repo, f"/tarball/{ref}")

    def url_requires_auth(self, url: str) -> bool:
        """Decide whether a download should carry the token.

        With no token nothing can be authenticated, so the answer is False.
        With a token every github.com / api.github.com URL is authenticated,
        covering private repositories and easing anonymous rate limits.
        """
        if not self.settings.has_token:
            return False
        return is_github_url(url)
