"""Tests for the update checker."""

from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from github_updates.exceptions import TransportError
from github_updates.models import (
    Asset,
    PluginInfo,
    PluginUpdate,
    Release,
    RepositoryRegistration,
    ThemeInfo,
    ThemeUpdate,
    UpdateTransient,
)
from github_updates.updater import UpdateChecker, package_url
from helpers import PLUGIN_MAIN, THEME_STYLE

PLUGIN_REPO = RepositoryRegistration(
    type="plugin", owner="acme", name="my-plugin", file="my-plugin/my-plugin.php"
)
THEME_REPO = RepositoryRegistration(type="theme", owner="acme", name="my-theme", slug="my-theme")

RELEASE_2_0 = Release(
    tag_name="v2.0.0",
    body="New features",
    zipball_url="https://api.github.com/repos/acme/my-plugin/zipball/v2.0.0",
    html_url="https://github.com/acme/my-plugin/releases/tag/v2.0.0",
    published_at="2024-05-01T12:00:00Z",
)


@pytest.fixture
def installed_site(site):
    plugin_dir = site.plugins_dir / "my-plugin"
    plugin_dir.mkdir()
    (plugin_dir / "my-plugin.php").write_text(PLUGIN_MAIN)
    theme_dir = site.themes_dir / "my-theme"
    theme_dir.mkdir()
    (theme_dir / "style.css").write_text(THEME_STYLE)
    return site


@pytest.fixture
def resolver():
    resolver = Mock()
    resolver.latest_release.return_value = RELEASE_2_0
    return resolver


def plugin_transient(site):
    return UpdateTransient(checked=site.installed_plugins())


class TestPluginUpdates:
    def test_newer_release_is_offered(self, installed_site, resolver):
        checker = UpdateChecker(installed_site, resolver, [PLUGIN_REPO])

        transient = checker.check_plugin_updates(plugin_transient(installed_site))

        assert transient.response["my-plugin/my-plugin.php"] == PluginUpdate(
            id="my-plugin/my-plugin.php",
            slug="my-plugin",
            plugin="my-plugin/my-plugin.php",
            new_version="2.0.0",
            url="https://github.com/acme/my-plugin/releases/tag/v2.0.0",
            package="https://api.github.com/repos/acme/my-plugin/zipball/v2.0.0",
        )
        resolver.latest_release.assert_called_once_with("acme", "my-plugin")

    @pytest.mark.parametrize("tag", ["v1.0.0", "1.0.0", "v0.9.9", "v1.0.0-rc1", "main"])
    def test_no_update_unless_strictly_newer(self, installed_site, resolver, tag):
        resolver.latest_release.return_value = Release(
            tag_name=tag, zipball_url="https://api.github.com/repos/acme/my-plugin/zipball/x"
        )
        checker = UpdateChecker(installed_site, resolver, [PLUGIN_REPO])

        transient = checker.check_plugin_updates(plugin_transient(installed_site))

        assert transient.response == {}

    def test_stable_release_offered_over_installed_beta(self, installed_site, resolver):
        main_file = installed_site.plugins_dir / "my-plugin" / "my-plugin.php"
        main_file.write_text(PLUGIN_MAIN.replace("Version: 1.0.0", "Version: 2.0.0-beta1"))
        checker = UpdateChecker(installed_site, resolver, [PLUGIN_REPO])

        transient = checker.check_plugin_updates(plugin_transient(installed_site))

        assert transient.response["my-plugin/my-plugin.php"].new_version == "2.0.0"

    def test_uppercase_tag_prefix_is_dropped(self, installed_site, resolver):
        resolver.latest_release.return_value = Release(
            tag_name="V2.0.0", zipball_url="https://api.github.com/repos/acme/my-plugin/zipball/V2.0.0"
        )
        checker = UpdateChecker(installed_site, resolver, [PLUGIN_REPO])

        transient = checker.check_plugin_updates(plugin_transient(installed_site))

        assert transient.response["my-plugin/my-plugin.php"].new_version == "2.0.0"

    def test_no_package_means_no_update(self, installed_site, resolver):
        resolver.latest_release.return_value = Release(
            tag_name="v2.0.0", assets=[Asset(name="notes.txt", content_type="text/plain")]
        )
        checker = UpdateChecker(installed_site, resolver, [PLUGIN_REPO])

        transient = checker.check_plugin_updates(plugin_transient(installed_site))

        assert transient.response == {}

    def test_empty_transient_is_returned_unchanged(self, installed_site, resolver):
        checker = UpdateChecker(installed_site, resolver, [PLUGIN_REPO])
        transient = UpdateTransient()

        assert checker.check_plugin_updates(transient) is transient
        resolver.latest_release.assert_not_called()

    def test_uninstalled_plugin_is_skipped(self, installed_site, resolver):
        missing = RepositoryRegistration(
            type="plugin", owner="acme", name="gone", file="gone/gone.php"
        )
        checker = UpdateChecker(installed_site, resolver, [missing])

        transient = checker.check_plugin_updates(plugin_transient(installed_site))

        assert transient.response == {}
        resolver.latest_release.assert_not_called()

    def test_failure_skips_only_that_repository(self, installed_site, resolver):
        other_dir = installed_site.plugins_dir / "other"
        other_dir.mkdir()
        (other_dir / "other.php").write_text(PLUGIN_MAIN)
        other = RepositoryRegistration(
            type="plugin", owner="acme", name="other", file="other/other.php"
        )
        resolver.latest_release.side_effect = [TransportError("down"), RELEASE_2_0]
        checker = UpdateChecker(installed_site, resolver, [other, PLUGIN_REPO])

        transient = checker.check_plugin_updates(plugin_transient(installed_site))

        assert list(transient.response) == ["my-plugin/my-plugin.php"]


class TestThemeUpdates:
    def test_newer_release_is_offered(self, installed_site, resolver):
        checker = UpdateChecker(installed_site, resolver, [THEME_REPO, PLUGIN_REPO])

        transient = checker.check_theme_updates(
            UpdateTransient(checked=installed_site.installed_themes())
        )

        assert transient.response == {
            "my-theme": ThemeUpdate(
                theme="my-theme",
                new_version="2.0.0",
                url="https://github.com/acme/my-plugin/releases/tag/v2.0.0",
                package="https://api.github.com/repos/acme/my-plugin/zipball/v2.0.0",
            )
        }

    def test_missing_theme_is_skipped(self, site, resolver):
        checker = UpdateChecker(site, resolver, [THEME_REPO])

        transient = checker.check_theme_updates(UpdateTransient(checked={"other": "1.0"}))

        assert transient.response == {}
        resolver.latest_release.assert_not_called()


class TestInformationProviders:
    def test_plugin_information(self, installed_site, resolver):
        checker = UpdateChecker(installed_site, resolver, [PLUGIN_REPO])

        info = checker.plugins_api(False, "plugin_information", SimpleNamespace(slug="my-plugin"))

        assert isinstance(info, PluginInfo)
        assert info.name == "My Plugin"
        assert info.version == "2.0.0"
        assert info.author == "Acme"
        assert info.requires == "6.0"
        assert info.tested == "6.5"
        assert info.requires_php == "8.0"
        assert info.download_link == RELEASE_2_0.zipball_url
        assert info.trunk == RELEASE_2_0.zipball_url
        assert info.last_updated == "2024-05-01"
        assert info.sections == {"description": "Does useful things.", "changelog": "New features"}

    @pytest.mark.parametrize(
        "action,slug",
        [("query_plugins", "my-plugin"), ("plugin_information", "unknown"), ("plugin_information", None)],
    )
    def test_plugin_information_passthrough(self, installed_site, resolver, action, slug):
        checker = UpdateChecker(installed_site, resolver, [PLUGIN_REPO])
        result = object()

        assert checker.plugins_api(result, action, SimpleNamespace(slug=slug)) is result

    def test_plugin_information_when_release_unavailable(self, installed_site, resolver):
        resolver.latest_release.side_effect = TransportError("down")
        checker = UpdateChecker(installed_site, resolver, [PLUGIN_REPO])

        assert checker.plugins_api(False, "plugin_information", SimpleNamespace(slug="my-plugin")) is False

    def test_theme_information(self, installed_site, resolver):
        checker = UpdateChecker(installed_site, resolver, [THEME_REPO])

        info = checker.themes_api(None, "theme_information", SimpleNamespace(slug="my-theme"))

        assert isinstance(info, ThemeInfo)
        assert info.name == "My Theme"
        assert info.homepage == "https://github.com/acme/my-theme"
        assert info.version == "2.0.0"

    def test_theme_information_passthrough(self, installed_site, resolver):
        checker = UpdateChecker(installed_site, resolver, [THEME_REPO])

        assert checker.themes_api(None, "query_themes", SimpleNamespace(slug="my-theme")) is None


class TestPackageURL:
    def test_prefers_zipball(self):
        release = Release(
            tag_name="v1",
            zipball_url="https://api.github.com/zipball",
            assets=[Asset(name="a.zip", content_type="application/zip", browser_download_url="https://x/a.zip")],
        )

        assert package_url(release) == "https://api.github.com/zipball"

    def test_first_zip_asset(self):
        release = Release(
            tag_name="v1",
            assets=[
                Asset(name="a.txt", content_type="text/plain", browser_download_url="https://x/a.txt"),
                Asset(name="b.zip", content_type="application/zip", browser_download_url="https://x/b.zip"),
            ],
        )

        assert package_url(release) == "https://x/b.zip"
