"""Observer hooks fired at the decision points of the GitHub components."""

import logging

from github_updates.exceptions import GitHubUpdatesError

logger = logging.getLogger(__name__)


class EventObserver:
    """Receives notifications from the client, resolver and downloader.

    The base class ignores every event; subclass it to route events to a
    sink of your choice.
    """

    def request_sent(self, url: str, authenticated: bool) -> None:
        pass

    def response_received(self, url: str, status: int) -> None:
        pass

    def fallback_taken(self, kind: str, detail: str) -> None:
        pass

    def failure_raised(self, error: GitHubUpdatesError) -> None:
        pass


class LoggingObserver(EventObserver):
    """Default observer writing every event to the standard logging system."""

    def __init__(self, log: logging.Logger | None = None):
        self.logger = log or logger

    def request_sent(self, url: str, authenticated: bool) -> None:
        mode = "authenticated" if authenticated else "anonymous"
        self.logger.debug(f"GitHub request ({mode}): {url}", extra={"url": url})

    def response_received(self, url: str, status: int) -> None:
        self.logger.debug(
            f"GitHub response code {status} for {url}", extra={"url": url, "status": status}
        )

    def fallback_taken(self, kind: str, detail: str) -> None:
        self.logger.info(f"Fallback ({kind}): {detail}", extra={"fallback": kind})

    def failure_raised(self, error: GitHubUpdatesError) -> None:
        self.logger.error(
            f"{type(error).__name__}: {error}",
            extra={"error_code": error.code, **error.context},
        )


class RecordingObserver(EventObserver):
    """Keeps every event in memory, in order."""

    def __init__(self) -> None:
        self.events: list[tuple] = []

    def request_sent(self, url: str, authenticated: bool) -> None:
        self.events.append(("request_sent", url, authenticated))

    def response_received(self, url: str, status: int) -> None:
        self.events.append(("response_received", url, status))

    def fallback_taken(self, kind: str, detail: str) -> None:
        self.events.append(("fallback_taken", kind, detail))

    def failure_raised(self, error: GitHubUpdatesError) -> None:
        self.events.append(("failure_raised", error.code))

    def kinds(self) -> list[str]:
        return [event[0] for event in self.events]
