"""Data models for GitHub releases, repositories and update descriptors."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from github_updates.exceptions import ConfigError, InvalidResponseError
from github_updates.utils import iso_date, normalize_version

PLUGIN = "plugin"
THEME = "theme"
PACKAGE_TYPES = (PLUGIN, THEME)


def _require(data: Any, key: str, kind: str) -> Any:
    if not isinstance(data, dict):
        raise InvalidResponseError(f"Expected a JSON object for {kind}")
    value = data.get(key)
    if value is None or value == "":
        raise InvalidResponseError(f"Missing required field '{key}' in {kind}")
    return value


@dataclass
class Asset:
    """A file uploaded to a GitHub release."""

    name: str
    content_type: str | None = None
    browser_download_url: str | None = None
    url: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Asset":
        return cls(
            name=_require(data, "name", "release asset"),
            content_type=data.get("content_type"),
            browser_download_url=data.get("browser_download_url"),
            url=data.get("url"),
        )

    @property
    def is_zip(self) -> bool:
        return self.name.endswith(".zip") or self.content_type == "application/zip"


@dataclass
class Release:
    """A GitHub release, either fetched or synthesized from a branch."""

    tag_name: str
    name: str | None = None
    body: str | None = None
    zipball_url: str | None = None
    tarball_url: str | None = None
    published_at: str | None = None
    html_url: str | None = None
    assets: list[Asset] = field(default_factory=list)
    synthetic: bool = False

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Release":
        """Create a Release from a /releases JSON object.

        Raises:
            InvalidResponseError: If the payload is not a release
        """
        tag_name = _require(data, "tag_name", "release")
        assets = data.get("assets") or []
        if not isinstance(assets, list):
            raise InvalidResponseError("Release assets must be a list")

        return cls(
            tag_name=tag_name,
            name=data.get("name"),
            body=data.get("body"),
            zipball_url=data.get("zipball_url"),
            tarball_url=data.get("tarball_url"),
            published_at=data.get("published_at"),
            html_url=data.get("html_url"),
            assets=[Asset.from_api(asset) for asset in assets],
        )

    @property
    def version(self) -> str:
        """Tag name with a single leading 'v' or 'V' removed."""
        return normalize_version(self.tag_name)

    @property
    def published_date(self) -> str:
        return iso_date(self.published_at)

    def find_zip_asset(self) -> Asset | None:
        for asset in self.assets:
            if asset.is_zip:
                return asset
        return None


@dataclass
class Repository:
    """Repository metadata from GET /repos/{owner}/{repo}."""

    name: str
    full_name: str
    owner_login: str
    default_branch: str | None = None
    description: str | None = None
    stargazers_count: int = 0
    updated_at: str | None = None
    html_url: str | None = None
    private: bool = False
    has_wiki: bool = False
    license_name: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Repository":
        name = _require(data, "name", "repository")
        owner = data.get("owner") or {}
        license_data = data.get("license") or {}
        return cls(
            name=name,
            full_name=data.get("full_name") or name,
            owner_login=owner.get("login", ""),
            default_branch=data.get("default_branch"),
            description=data.get("description"),
            stargazers_count=data.get("stargazers_count") or 0,
            updated_at=data.get("updated_at"),
            html_url=data.get("html_url"),
            private=bool(data.get("private", False)),
            has_wiki=bool(data.get("has_wiki", False)),
            license_name=license_data.get("name"),
        )


@dataclass
class SearchResults:
    total_count: int
    incomplete_results: bool
    items: list[Repository]

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "SearchResults":
        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise InvalidResponseError("Search response has no 'items' list")
        return cls(
            total_count=data.get("total_count", len(items)),
            incomplete_results=bool(data.get("incomplete_results", False)),
            items=[Repository.from_api(item) for item in items],
        )


@dataclass
class RateLimitSnapshot:
    """Rate-limit headers of the most recent API response."""

    limit: int | None = None
    remaining: int | None = None
    reset: int | None = None
    resource: str | None = None

    @classmethod
    def from_headers(cls, headers: Any) -> "RateLimitSnapshot":
        def as_int(name: str) -> int | None:
            value = headers.get(name)
            try:
                return int(value) if value is not None else None
            except (TypeError, ValueError):
                return None

        return cls(
            limit=as_int("X-RateLimit-Limit"),
            remaining=as_int("X-RateLimit-Remaining"),
            reset=as_int("X-RateLimit-Reset"),
            resource=headers.get("X-RateLimit-Resource"),
        )

    @property
    def reset_at(self) -> datetime | None:
        if self.reset is None:
            return None
        return datetime.fromtimestamp(self.reset, tz=UTC)


@dataclass
class AuthenticatedUser:
    login: str
    name: str | None = None
    html_url: str | None = None
    rate_limit: RateLimitSnapshot | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "AuthenticatedUser":
        return cls(
            login=_require(data, "login", "user"),
            name=data.get("name"),
            html_url=data.get("html_url"),
        )


@dataclass
class RepositoryRegistration:
    """A repository registered for update checks.

    Attributes:
        type: "plugin" or "theme"
        owner: Repository owner or organization
        name: Repository name
        slug: Theme directory name (themes only)
        file: Main plugin file relative to the plugins root (plugins only)
    """

    type: str
    owner: str
    name: str
    slug: str = ""
    file: str = ""

    def __post_init__(self) -> None:
        if not self.type or not self.owner or not self.name:
            raise ConfigError("Required fields are missing.")
        if self.type not in PACKAGE_TYPES:
            raise ConfigError(f"Invalid repository type: {self.type}")
        if self.type == THEME and not self.slug:
            raise ConfigError("Theme slug is required.")
        if self.type == PLUGIN and not self.file:
            raise ConfigError("Plugin file is required.")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RepositoryRegistration":
        return cls(
            type=data.get("type", ""),
            owner=data.get("owner", ""),
            name=data.get("name", ""),
            slug=data.get("slug") or "",
            file=data.get("file") or "",
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "type": self.type,
            "owner": self.owner,
            "name": self.name,
            "slug": self.slug,
            "file": self.file,
        }

    @property
    def plugin_slug(self) -> str:
        """Directory part of the plugin file."""
        return self.file.split("/", 1)[0] if "/" in self.file else "."


@dataclass
class PluginUpdate:
    id: str
    slug: str
    plugin: str
    new_version: str
    url: str
    package: str


@dataclass
class ThemeUpdate:
    theme: str
    new_version: str
    url: str
    package: str


@dataclass
class UpdateTransient:
    """The host's update-aggregation structure.

    Attributes:
        checked: Installed version keyed by plugin file or theme slug
        response: Available updates keyed the same way
    """

    checked: dict[str, str] = field(default_factory=dict)
    response: dict[str, PluginUpdate | ThemeUpdate] = field(default_factory=dict)


@dataclass
class PackageInfo:
    """Extended plugin or theme information served to the host."""

    name: str
    slug: str
    version: str
    author: str = ""
    author_profile: str = ""
    requires: str = ""
    tested: str = ""
    requires_php: str = ""
    homepage: str = ""
    download_link: str = ""
    last_updated: str = ""
    sections: dict[str, str] = field(default_factory=dict)


@dataclass
class PluginInfo(PackageInfo):
    trunk: str = ""


@dataclass
class ThemeInfo(PackageInfo):
    pass


@dataclass
class InstallResult:
    type: str
    slug: str
    target_dir: str
    message: str
    file: str | None = None
    activated: bool = False
