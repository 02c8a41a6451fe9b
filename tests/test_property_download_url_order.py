"""Property-based tests for the download URL preference order."""

from unittest.mock import Mock

from hypothesis import given
from hypothesis import strategies as st

from github_updates.config_manager import Settings
from github_updates.github_client import GitHubClient
from github_updates.models import Asset, Release
from github_updates.release_resolver import ReleaseResolver
from github_updates.utils import is_tag_shaped

tag = st.from_regex(r"v?[0-9]{1,2}\.[0-9]{1,2}\.[0-9]{1,2}", fullmatch=True)
branch = st.from_regex(r"[a-z][a-z0-9\-]{0,15}", fullmatch=True)


def make_resolver(token: str) -> ReleaseResolver:
    return ReleaseResolver(GitHubClient(Settings(github_token=token), session=Mock()))


@given(
    tag_name=tag,
    has_token=st.booleans(),
    has_zipball=st.booleans(),
    extra_assets=st.lists(
        st.sampled_from(["notes.txt", "checksums.sha256", "build.tar.gz"]), max_size=3
    ),
)
def test_zip_asset_always_wins(tag_name, has_token, has_zipball, extra_assets):
    """Whenever a release carries a zip asset, that asset is chosen."""
    resolver = make_resolver("ghp_" + "x" * 36 if has_token else "")
    zip_asset = Asset(
        name="package.zip",
        browser_download_url=f"https://github.com/acme/pkg/releases/download/{tag_name}/package.zip",
        url="https://api.github.com/repos/acme/pkg/releases/assets/7",
    )
    release = Release(
        tag_name=tag_name,
        zipball_url=f"https://api.github.com/repos/acme/pkg/zipball/{tag_name}" if has_zipball else None,
        assets=[Asset(name=name) for name in extra_assets] + [zip_asset],
    )

    url = resolver.release_download_url("acme", "pkg", release)

    expected = zip_asset.url if has_token else zip_asset.browser_download_url
    assert url == expected


@given(tag_name=tag, has_zipball=st.booleans())
def test_zipball_before_constructed_url(tag_name, has_zipball):
    """Without a zip asset the release zipball is preferred over a built URL."""
    resolver = make_resolver("")
    zipball = "https://codeload.example/acme/pkg/zip" if has_zipball else None
    release = Release(tag_name=tag_name, zipball_url=zipball)

    url = resolver.release_download_url("acme", "pkg", release)

    if has_zipball:
        assert url == zipball
    else:
        assert url == f"https://api.github.com/repos/acme/pkg/zipball/{tag_name}"


@given(ref=st.one_of(tag, branch))
def test_public_archive_kind_follows_ref_shape(ref):
    """Explicit versions without a token map to tags/ or heads/ by shape."""
    url = make_resolver("").download_url("acme", "pkg", ref)

    kind = "tags" if is_tag_shaped(ref) else "heads"
    assert url == f"https://github.com/acme/pkg/archive/refs/{kind}/{ref}.zip"
