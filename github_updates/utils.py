"""Utility functions for versions, slugs and GitHub URLs."""

import re
import unicodedata
from datetime import datetime
from urllib.parse import urlparse

GITHUB_HOSTS = ("github.com", "api.github.com")

_TAG_PATTERN = re.compile(r"^v?\d")

_VERSION_TOKEN = re.compile(r"\d+|[a-z]+")

# Unknown words rank below "dev"; numbers rank between "rc" and "pl"
_WORD_RANKS = {
    "dev": 1,
    "alpha": 2,
    "a": 2,
    "beta": 3,
    "b": 3,
    "rc": 4,
    "pl": 6,
    "p": 6,
}
_NUMBER_RANK = 5

# Marks the end of a version: below any further number, above any pre-release word
_END = (_NUMBER_RANK, -1)


def parse_version(version: str) -> tuple[tuple[int, int], ...]:
    """Parse a version string into a comparison key.

    The string is split into numeric and alphabetic runs, so "1.2.3-beta1"
    reads as 1, 2, 3, beta, 1. Numbers compare numerically. Pre-release words
    rank dev < alpha < beta < rc, all below a release, so a pre-release sorts
    before the version it precedes. A version with an extra numeric part sorts
    after its prefix. Branch names and other words sort below every number.

    Args:
        version: Version string to parse (e.g., "1.2.3", "1.0", "2.0.1-beta").

    Returns:
        Tuple of (rank, value) pairs suitable for comparison.

    Examples:
        >>> parse_version("1.9") < parse_version("1.10")
        True
        >>> parse_version("2.0.0-beta1") < parse_version("2.0.0-rc1") < parse_version("2.0.0")
        True
    """
    if not version or not isinstance(version, str):
        return (_END,)

    parts = []
    for token in _VERSION_TOKEN.findall(version.lower()):
        if token.isdigit():
            parts.append((_NUMBER_RANK, int(token)))
        else:
            parts.append((_WORD_RANKS.get(token, 0), 0))
    parts.append(_END)
    return tuple(parts)


def normalize_version(version: str) -> str:
    """Strip surrounding whitespace and one leading 'v' from a tag."""
    version = (version or "").strip()
    if version[:1] in ("v", "V"):
        return version[1:]
    return version


def is_newer_version(installed: str, remote: str) -> bool:
    """Return True only when ``remote`` is strictly greater than ``installed``.

    Both sides are normalized first, so "v1.2.0" and "1.2.0" compare equal.
    """
    return parse_version(normalize_version(installed)) < parse_version(
        normalize_version(remote)
    )


def iso_date(timestamp: str | None) -> str:
    """Date part of an ISO 8601 timestamp, or "" when it cannot be parsed."""
    if not timestamp:
        return ""
    try:
        return datetime.fromisoformat(timestamp).date().isoformat()
    except (TypeError, ValueError):
        return ""


def is_tag_shaped(ref: str) -> bool:
    """A ref looks like a release tag when it is a digit, optionally after 'v'."""
    return bool(_TAG_PATTERN.match(ref or ""))


def is_github_url(url: str) -> bool:
    host = (urlparse(url or "").hostname or "").lower()
    return host in GITHUB_HOSTS


def sanitize_title(title: str) -> str:
    """Turn a repository name into a directory slug.

    Lowercases, strips accents, replaces every run of characters other than
    letters, digits, underscores and dashes with a single dash.

    Examples:
        >>> sanitize_title("My Cool_Plugin!")
        'my-cool_plugin'
    """
    normalized = unicodedata.normalize("NFKD", title or "")
    ascii_title = normalized.encode("ascii", "ignore").decode("ascii").lower()
    slug = re.sub(r"[^a-z0-9_\-]+", "-", ascii_title)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")
