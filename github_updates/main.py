"""Command line entry point for GitHub Updates."""

import argparse
import json
import logging
import sys
from dataclasses import asdict, is_dataclass
from typing import Any

from github_updates import activity_log
from github_updates.activity_log import ActivityLogHandler
from github_updates.config import ENV_CONTENT_DIR, get_env_var, setup_logging
from github_updates.config_manager import ConfigManager, Settings
from github_updates.exceptions import (
    DirectoryNotEmptyError,
    GitHubAPIError,
    GitHubUpdatesError,
)
from github_updates.hooks import GitHubUpdates
from github_updates.models import PACKAGE_TYPES, PLUGIN, RepositoryRegistration
from github_updates.site import DirectorySite
from github_updates.utils import sanitize_title

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="github-updates",
        description="Install and update WordPress plugins and themes from GitHub.",
    )
    parser.add_argument("--config", help="Path to the YAML configuration file.")
    parser.add_argument(
        "--content-dir",
        help="Site content directory holding plugins/ and themes/ (default: $WP_CONTENT_DIR or .).",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log debug output to stderr."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    connection = subparsers.add_parser("test-connection", help="Check the GitHub token.")
    connection.add_argument("--token", help="Token to test instead of the stored one.")
    connection.add_argument(
        "--save", action="store_true", help="Store --token when the test succeeds."
    )

    search = subparsers.add_parser("search", help="Show a repository and its latest release.")
    search.add_argument("owner")
    search.add_argument("name")

    search_repos = subparsers.add_parser("search-repos", help="Search GitHub repositories.")
    search_repos.add_argument("query")
    search_repos.add_argument("--page", type=int, default=1)
    search_repos.add_argument("--per-page", type=int, default=10)

    releases = subparsers.add_parser("releases", help="List the releases of a repository.")
    releases.add_argument("owner")
    releases.add_argument("name")

    download_url = subparsers.add_parser("download-url", help="Resolve the archive URL.")
    download_url.add_argument("owner")
    download_url.add_argument("name")
    download_url.add_argument("--version", help="Tag or branch to download.")

    install = subparsers.add_parser("install", help="Install a plugin or theme.")
    install.add_argument("type", choices=PACKAGE_TYPES)
    install.add_argument("owner")
    install.add_argument("name")
    install.add_argument("--download-url", help="Archive URL to use instead of resolving one.")
    install.add_argument("--slug", help="Directory name (default: repository name).")
    install.add_argument("--activate", action="store_true")
    install.add_argument(
        "--add-to-updater",
        action="store_true",
        help="Register the installed package for update checks.",
    )

    subparsers.add_parser("check-updates", help="Report updates for registered repositories.")

    repos = subparsers.add_parser("repos", help="Manage registered repositories.")
    repos_commands = repos.add_subparsers(dest="repos_command", required=True)
    repos_commands.add_parser("list")
    repos_add = repos_commands.add_parser("add")
    repos_add.add_argument("type", choices=PACKAGE_TYPES)
    repos_add.add_argument("owner")
    repos_add.add_argument("name")
    repos_add.add_argument("--slug", default="", help="Theme slug (themes).")
    repos_add.add_argument("--file", default="", help="Main plugin file, e.g. my-plugin/my-plugin.php.")
    repos_remove = repos_commands.add_parser("remove")
    repos_remove.add_argument("index", type=int)

    logs = subparsers.add_parser("logs", help="Show or clear the activity log.")
    logs.add_argument("--limit", type=int, default=20)
    logs.add_argument("--clear", action="store_true")

    subparsers.add_parser("uninstall", help="Delete stored settings and registrations.")

    return parser


def _to_data(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, dict):
        return {key: _to_data(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_data(item) for item in value]
    return value


def _emit(success: bool, data: Any) -> int:
    print(json.dumps({"success": success, "data": _to_data(data)}, indent=2, default=str))
    return 0 if success else 1


def _connection_hint(error: GitHubUpdatesError) -> str:
    message = str(error)
    if isinstance(error, GitHubAPIError):
        if error.status in (401, 403):
            message += (
                " Your token may be invalid or missing required permissions. "
                'Please make sure your token has the "repo" scope.'
            )
        elif error.status == 404:
            message += " The resource could not be found."
    return message


def _test_connection(args: argparse.Namespace, app: GitHubUpdates) -> int:
    try:
        user = app.client.test_connection()
    except GitHubUpdatesError as e:
        return _emit(False, _connection_hint(e))

    if args.token and args.save:
        app.config_manager.save_settings(app.settings)
    return _emit(True, {"message": f"Connection successful! Authenticated as {user.login}.", "user": user})


def _install(args: argparse.Namespace, app: GitHubUpdates) -> int:
    try:
        result = app.installer.install(
            args.type,
            args.owner,
            args.name,
            download_url=args.download_url,
            slug=args.slug,
            activate=args.activate,
        )
    except GitHubUpdatesError as e:
        # A pre-existing directory is never ours to remove
        slug = sanitize_title(args.slug or args.name)
        if slug and not isinstance(e, DirectoryNotEmptyError):
            target_dir = e.context.get("target_dir") or app.installer.target_dir(args.type, slug)
            app.installer.cleanup_empty_directory(target_dir)
        return _emit(False, f"Failed to install package: {e}")

    if args.add_to_updater:
        if result.type == PLUGIN:
            app.installer.add_to_repository_list(PLUGIN, args.owner, args.name, file=result.file)
        else:
            app.installer.add_to_repository_list(args.type, args.owner, args.name, slug=result.slug)
    return _emit(True, result)


def _repos(args: argparse.Namespace, config_manager: ConfigManager) -> int:
    if args.repos_command == "list":
        return _emit(True, [repo.to_dict() for repo in config_manager.get_repositories()])
    if args.repos_command == "add":
        registration = RepositoryRegistration(
            type=args.type, owner=args.owner, name=args.name, slug=args.slug, file=args.file
        )
        repositories = config_manager.add_repository(registration)
        return _emit(True, [repo.to_dict() for repo in repositories])
    removed = config_manager.remove_repository(args.index)
    return _emit(True, removed.to_dict())


def run(args: argparse.Namespace, config_manager: ConfigManager, settings: Settings) -> int:
    if args.command == "repos":
        return _repos(args, config_manager)
    if args.command == "logs":
        if args.clear:
            activity_log.clear_logs(config_manager)
            return _emit(True, "Logs cleared.")
        return _emit(True, activity_log.get_logs(config_manager, args.limit))
    if args.command == "uninstall":
        config_manager.purge()
        return _emit(True, "Settings and registrations deleted.")

    if args.command == "test-connection" and args.token:
        settings.github_token = args.token.strip()

    content_dir = args.content_dir or get_env_var(ENV_CONTENT_DIR, ".")
    app = GitHubUpdates(config_manager, DirectorySite(content_dir), settings=settings)

    if args.command == "test-connection":
        return _test_connection(args, app)
    if args.command == "install":
        return _install(args, app)
    if args.command == "search":
        return _emit(True, app.installer.search_repository(args.owner, args.name))
    if args.command == "search-repos":
        return _emit(True, app.client.search_repositories(args.query, args.page, args.per_page))
    if args.command == "releases":
        return _emit(True, app.client.get_releases(args.owner, args.name))
    if args.command == "download-url":
        return _emit(True, app.resolver.download_url(args.owner, args.name, args.version))
    if args.command == "check-updates":
        plugins, themes = app.check_updates()
        return _emit(True, {"plugins": plugins.response, "themes": themes.response})

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    config_manager = ConfigManager(args.config)
    try:
        settings = config_manager.load_settings()
    except GitHubUpdatesError as e:
        return _emit(False, str(e))

    setup_logging(
        "DEBUG" if args.verbose else None,
        secrets=[settings.github_token, getattr(args, "token", None) or ""],
        extra_handlers=[ActivityLogHandler(config_manager, settings.log_level)],
    )

    try:
        return run(args, config_manager, settings)
    except GitHubUpdatesError as e:
        logger.error(f"{args.command} failed: {e}")
        return _emit(False, str(e))


if __name__ == "__main__":
    sys.exit(main())
