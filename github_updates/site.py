"""The WordPress site that plugins and themes are installed into."""

import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path

import yaml

from github_updates.exceptions import ActivationError

logger = logging.getLogger(__name__)

# Only the head of a file is scanned for header fields
HEADER_READ_BYTES = 8192

PLUGIN_HEADERS = {
    "Name": "Plugin Name",
    "PluginURI": "Plugin URI",
    "Version": "Version",
    "Description": "Description",
    "Author": "Author",
    "AuthorURI": "Author URI",
    "RequiresWP": "Requires at least",
    "RequiresPHP": "Requires PHP",
    "TestedUpTo": "Tested up to",
}

THEME_HEADERS = {
    "Name": "Theme Name",
    "ThemeURI": "Theme URI",
    "Version": "Version",
    "Description": "Description",
    "Author": "Author",
    "AuthorURI": "Author URI",
    "RequiresWP": "Requires at least",
    "RequiresPHP": "Requires PHP",
    "TestedUpTo": "Tested up to",
}

_COMMENT_TAIL = re.compile(r"\s*(?:\*/|\?>).*")


def read_file_headers(path: str | Path, headers: dict[str, str]) -> dict[str, str]:
    """Read ``Header Name: value`` lines from the start of a PHP or CSS file.

    Args:
        path: File to scan
        headers: Mapping of result key to header label

    Returns:
        Dictionary with one entry per key; missing headers map to ""
    """
    try:
        with open(path, "rb") as f:
            raw = f.read(HEADER_READ_BYTES)
    except OSError as e:
        logger.debug(f"Could not read headers from {path}: {e}")
        return {key: "" for key in headers}

    text = raw.decode("utf-8", errors="replace").replace("\r", "\n")
    result = {}
    for key, label in headers.items():
        pattern = re.compile(
            r"^(?:[ \t]*<\?php)?[ \t/*#@]*" + re.escape(label) + r":(.*)$",
            re.IGNORECASE | re.MULTILINE,
        )
        match = pattern.search(text)
        result[key] = _COMMENT_TAIL.sub("", match.group(1)).strip() if match else ""
    return result


class Site(ABC):
    """Host operations the installer and update checker rely on."""

    @property
    @abstractmethod
    def plugins_dir(self) -> Path:
        """Root directory holding one directory per plugin."""

    @property
    @abstractmethod
    def themes_dir(self) -> Path:
        """Root directory holding one directory per theme."""

    @abstractmethod
    def activate_plugin(self, plugin_file: str) -> None:
        """Activate a plugin by its file relative to the plugins root."""

    @abstractmethod
    def switch_theme(self, slug: str) -> None:
        """Make the theme with this slug the active one."""

    def get_plugin_data(self, plugin_file: str) -> dict[str, str]:
        return read_file_headers(self.plugins_dir / plugin_file, PLUGIN_HEADERS)

    def get_theme_data(self, slug: str) -> dict[str, str] | None:
        """Theme headers from style.css, or None if the theme is not installed."""
        stylesheet = self.themes_dir / slug / "style.css"
        if not stylesheet.is_file():
            return None
        return read_file_headers(stylesheet, THEME_HEADERS)

    def plugin_exists(self, plugin_file: str) -> bool:
        return (self.plugins_dir / plugin_file).is_file()

    def installed_plugins(self) -> dict[str, str]:
        """Installed plugin versions keyed by plugin file.

        Scans top-level PHP files and PHP files one directory down, the same
        places the host looks for plugin headers.
        """
        plugins = {}
        if not self.plugins_dir.is_dir():
            return plugins

        candidates = sorted(self.plugins_dir.glob("*.php")) + sorted(
            self.plugins_dir.glob("*/*.php")
        )
        for path in candidates:
            data = read_file_headers(path, PLUGIN_HEADERS)
            if data["Name"]:
                plugin_file = path.relative_to(self.plugins_dir).as_posix()
                plugins[plugin_file] = data["Version"]
        return plugins

    def installed_themes(self) -> dict[str, str]:
        themes = {}
        if not self.themes_dir.is_dir():
            return themes

        for theme_dir in sorted(self.themes_dir.iterdir()):
            if not theme_dir.is_dir():
                continue
            data = self.get_theme_data(theme_dir.name)
            if data is not None:
                themes[theme_dir.name] = data["Version"]
        return themes


class DirectorySite(Site):
    """A site laid out as a content directory with plugins/ and themes/.

    Activation state is kept in ``site-state.yaml`` inside the content
    directory: the list of active plugin files and the active stylesheet.
    """

    STATE_FILE = "site-state.yaml"

    def __init__(self, content_dir: str | Path):
        self.content_dir = Path(content_dir).expanduser()
        self.state_path = self.content_dir / self.STATE_FILE

    @property
    def plugins_dir(self) -> Path:
        return self.content_dir / "plugins"

    @property
    def themes_dir(self) -> Path:
        return self.content_dir / "themes"

    def _read_state(self) -> dict:
        if not self.state_path.exists():
            return {}
        with open(self.state_path) as f:
            return yaml.safe_load(f) or {}

    def _write_state(self, state: dict) -> None:
        self.content_dir.mkdir(parents=True, exist_ok=True)
        with open(self.state_path, "w") as f:
            yaml.safe_dump(state, f, default_flow_style=False)

    def active_plugins(self) -> list[str]:
        return list(self._read_state().get("active_plugins") or [])

    def active_theme(self) -> str | None:
        return self._read_state().get("stylesheet")

    def activate_plugin(self, plugin_file: str) -> None:
        """Mark a plugin active.

        Raises:
            ActivationError: If the file is missing or has no plugin header
        """
        if not self.plugin_exists(plugin_file):
            raise ActivationError(f"Plugin file does not exist: {plugin_file}")
        if not self.get_plugin_data(plugin_file)["Name"]:
            raise ActivationError(f"The plugin does not have a valid header: {plugin_file}")

        state = self._read_state()
        active = list(state.get("active_plugins") or [])
        if plugin_file not in active:
            active.append(plugin_file)
        state["active_plugins"] = sorted(active)
        self._write_state(state)
        logger.info(f"Activated plugin {plugin_file}")

    def switch_theme(self, slug: str) -> None:
        if self.get_theme_data(slug) is None:
            raise ActivationError(f"The theme {slug} does not exist")

        state = self._read_state()
        state["stylesheet"] = slug
        self._write_state(state)
        logger.info(f"Switched theme to {slug}")
