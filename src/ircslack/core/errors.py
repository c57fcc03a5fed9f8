"""Slack plugin exceptions."""

from __future__ import annotations


class SlackError(Exception):
    """Base for plugin domain errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, object] | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}
        self.original_error = original_error


class SlackConfigurationError(SlackError):
    """Config validation or load failure."""


class SlackAPIError(SlackError):
    """A Slack Web API call did not produce a usable payload."""


class SlackTransportError(SlackAPIError):
    """Timeout, connection failure, HTTP error status or unreadable body."""


class SlackRemoteError(SlackAPIError):
    """Slack answered with ok=false; ``code`` holds Slack's error string."""


class SlackNotConfiguredError(SlackAPIError):
    """No API token is set; the plugin is inert."""
