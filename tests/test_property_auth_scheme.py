"""Property-based tests for Authorization scheme selection."""

from hypothesis import given
from hypothesis import strategies as st

from github_updates.config_manager import Settings
from github_updates.github_client import GitHubClient, authorization_header
from github_updates.package_downloader import PackageDownloader

token_body = st.text(
    min_size=1,
    max_size=60,
    alphabet="abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_",
)

prefixed_token = st.builds(
    lambda prefix, body: prefix + body,
    st.sampled_from(["ghp_", "github_pat_"]),
    token_body,
)

other_token = token_body.filter(lambda t: not t.startswith(("ghp_", "github_pat_")))


@given(token=prefixed_token)
def test_prefixed_tokens_use_bearer(token: str):
    """For any token with a fine-grained prefix, the scheme is Bearer."""
    assert authorization_header(token) == f"Bearer {token}"


@given(token=other_token)
def test_other_tokens_use_token_scheme(token: str):
    """For any other non-empty token, the classic token scheme is used."""
    assert authorization_header(token) == f"token {token}"


def test_empty_token_sends_no_header():
    assert authorization_header("") is None


@given(token=st.one_of(prefixed_token, other_token))
def test_client_and_downloader_agree(token: str):
    """API requests and downloads always authenticate the same way."""
    settings = Settings(github_token=token)
    client_header = GitHubClient(settings, session=object()).default_headers()["Authorization"]
    download_header = PackageDownloader(settings, session=object()).build_headers(
        "https://api.github.com/repos/acme/my-plugin/zipball/v1.0.0"
    )["Authorization"]

    assert client_header == download_header
