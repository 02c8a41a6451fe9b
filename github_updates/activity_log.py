"""Activity log kept in the configuration document."""

import logging
from datetime import datetime
from typing import Any

from github_updates.config_manager import ConfigManager

MAX_ENTRIES = 100

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

# Attributes every LogRecord has; anything else came in through ``extra``
_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
}


class ActivityLogHandler(logging.Handler):
    """Logging handler that stores the most recent entries, newest first.

    Entries are ``{timestamp, level, message, context}`` dictionaries, where
    ``context`` is built from the ``extra`` fields of the record. Only records
    at or above the configured level are kept, and the list is capped at
    ``MAX_ENTRIES``.
    """

    def __init__(self, config_manager: ConfigManager, level: str = "error"):
        super().__init__(LEVELS.get(level.lower(), logging.ERROR))
        self.config_manager = config_manager

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry = {
                "timestamp": datetime.fromtimestamp(record.created).strftime(
                    "%Y-%m-%d %H:%M:%S"
                ),
                "level": record.levelname.lower(),
                "message": record.getMessage(),
                "context": self._context(record),
            }
            logs = self.config_manager.get_logs()
            logs.insert(0, entry)
            self.config_manager.save_logs(logs[:MAX_ENTRIES])
        except Exception:
            self.handleError(record)

    @staticmethod
    def _context(record: logging.LogRecord) -> dict[str, Any]:
        context = {}
        for key, value in vars(record).items():
            if key in _RESERVED or key.startswith("_"):
                continue
            context[key] = value if isinstance(value, (str, int, float, bool)) else str(value)
        return context


def get_logs(config_manager: ConfigManager, limit: int = 20) -> list[dict[str, Any]]:
    return config_manager.get_logs()[:limit]


def clear_logs(config_manager: ConfigManager) -> None:
    config_manager.save_logs([])
