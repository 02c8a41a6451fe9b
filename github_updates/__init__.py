"""Install and update WordPress themes and plugins from GitHub repositories."""

__version__ = "1.0.3"
