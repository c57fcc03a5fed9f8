"""Slack read-marker sync from the visible part of a window."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import TYPE_CHECKING

from loguru import logger

from ircslack.cache import NEVER, IdentifierCache, PrivateGroup, PublicChannel
from ircslack.core.constants import SLACK_SERVER_PATTERN
from ircslack.core.errors import SlackAPIError
from ircslack.host import Server, Window

if TYPE_CHECKING:
    from ircslack.api import SlackClient


def is_slack_server(server: Server | None, pattern: str = SLACK_SERVER_PATTERN) -> bool:
    """True if ``server`` is connected through the Slack IRC gateway."""
    return server is not None and re.match(pattern, server.address) is not None


def last_visible_line(row_heights: Iterable[int], height: int) -> int | None:
    """Index of the last line (partly) on screen, counting from the top visible line.

    Rows are summed from the first line until they fill ``height``; the line
    that fills it is the answer, not the one after. None for no lines.
    """
    index = None
    rows = 0
    for index, line_rows in enumerate(row_heights):
        rows += line_rows
        if rows >= height:
            break
    return index


class ReadMarkState:
    """Last read-marker timestamp this process pushed, per channel."""

    def __init__(self) -> None:
        self._marks: dict[str, float] = {}

    def last(self, channel: str) -> float:
        return self._marks.get(channel, NEVER)

    def is_newer(self, channel: str, ts: float) -> bool:
        return ts > self.last(channel)

    def advance(self, channel: str, ts: float) -> None:
        """Record ``ts`` for ``channel``; older or equal values are ignored."""
        if self.is_newer(channel, ts):
            self._marks[channel] = ts


class ReadMarkReconciler:
    """Pushes the newest fully visible message time to Slack's mark endpoints."""

    def __init__(
        self,
        client: SlackClient,
        cache: IdentifierCache,
        *,
        state: ReadMarkState | None = None,
        server_pattern: str = SLACK_SERVER_PATTERN,
    ) -> None:
        self._client = client
        self._cache = cache
        self._state = state or ReadMarkState()
        self._server_pattern = server_pattern

    @property
    def state(self) -> ReadMarkState:
        return self._state

    def candidate(self, window: Window) -> float | None:
        """Time of the last visible line in ``window``, if any."""
        lines = window.view.visible()
        index = last_visible_line((line.rows for line in lines), window.view.height)
        if index is None:
            return None
        return lines[index].time

    def reconcile(self, window: Window) -> float | None:
        """Update Slack's read marker for ``window``. Returns the pushed ts or None."""
        item = window.active
        if item is None or item.type != "CHANNEL":
            return None
        if not is_slack_server(window.active_server, self._server_pattern):
            return None
        if not self._client.enabled:
            return None

        ts = self.candidate(window)
        if ts is None:
            return None

        channel = item.name[1:] if item.name.startswith("#") else item.name
        if not self._state.is_newer(channel, ts):
            logger.debug("Mark for {} already at {}, not pushing {}", channel, self._state.last(channel), ts)
            return None

        try:
            kind = self._cache.classify(channel)
            if isinstance(kind, PublicChannel):
                endpoint, channel_id = "channels.mark", kind.id
            elif isinstance(kind, PrivateGroup):
                endpoint, channel_id = "groups.mark", kind.id
            else:
                logger.debug("Not marking {}: direct messages are not supported", channel)
                return None
            self._client.call("GET", endpoint, {"channel": channel_id, "ts": _format_ts(ts)})
        except SlackAPIError as exc:
            logger.debug("Mark for {} not updated: {}", channel, exc)
            return None

        self._state.advance(channel, ts)
        logger.info("Marked {} read up to {}", channel, ts)
        return ts


def _format_ts(ts: float) -> str:
    """Slack timestamps are seconds with a six digit fraction."""
    return f"{ts:.6f}"
