"""Configuration and logging setup for GitHub Updates."""

import logging
import os
import re
import sys

# Environment variable names
ENV_CONFIG_PATH = "GITHUB_UPDATES_CONFIG"
ENV_GITHUB_TOKEN = "GITHUB_TOKEN"
ENV_LOG_LEVEL = "LOG_LEVEL"
ENV_CONTENT_DIR = "WP_CONTENT_DIR"

DEFAULT_CONFIG_PATH = "~/.config/github-updates/config.yaml"

REDACTED = "REDACTED"

_TOKEN_PATTERNS = [
    re.compile(r"\b(?:ghp|gho|ghu|ghs|ghr)_[A-Za-z0-9]{20,}\b"),
    re.compile(r"\bgithub_pat_[A-Za-z0-9_]{20,}\b"),
    re.compile(r"(?<=[?&]access_token=)[^&\s]+"),
    re.compile(r"(?<=Authorization: )(?:Bearer|token) \S+"),
]


def redact(text: str) -> str:
    """Mask GitHub credentials that may appear in a log message."""
    for pattern in _TOKEN_PATTERNS:
        text = pattern.sub(REDACTED, text)
    return text


class RedactingFilter(logging.Filter):
    """Logging filter that strips access tokens from every record."""

    def __init__(self, secrets: list[str] | None = None):
        super().__init__()
        self.secrets = [secret for secret in (secrets or []) if secret]

    def filter(self, record: logging.LogRecord) -> bool:
        message = redact(record.getMessage())
        for secret in self.secrets:
            message = message.replace(secret, REDACTED)
        record.msg = message
        record.args = None
        return True


def setup_logging(
    level: str | None = None,
    secrets: list[str] | None = None,
    extra_handlers: list[logging.Handler] | None = None,
) -> None:
    """Set up console logging for the command line and library use.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to $LOG_LEVEL or WARNING.
        secrets: Literal values (e.g. the configured token) to mask in output
        extra_handlers: Additional handlers, such as the activity log
    """
    log_level = level or os.getenv(ENV_LOG_LEVEL, "WARNING")

    stream_handler = logging.StreamHandler(sys.stderr)
    handlers: list[logging.Handler] = [stream_handler, *(extra_handlers or [])]
    redacting_filter = RedactingFilter(secrets)
    for handler in handlers:
        handler.addFilter(redacting_filter)

    # Configure root logger
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )

    # Activity log handlers see package records at any level and gate themselves
    logging.getLogger("github_updates").setLevel(logging.DEBUG)
    stream_handler.setLevel(getattr(logging, log_level.upper()))

    logging.getLogger("urllib3").setLevel(logging.WARNING)


def get_env_var(name: str, default: str | None = None, required: bool = False) -> str:
    """Get environment variable with optional default and validation.

    Args:
        name: Environment variable name
        default: Default value if not set
        required: Whether the variable is required

    Returns:
        Environment variable value

    Raises:
        ValueError: If required variable is not set
    """
    value = os.getenv(name, default)

    if required and not value:
        raise ValueError(f"Required environment variable {name} is not set")

    return value or ""
