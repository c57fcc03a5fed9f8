"""Channel backlog retrieval and message normalization."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from loguru import logger

from ircslack.cache import DirectMessage, IdentifierCache, PrivateGroup, PublicChannel
from ircslack.core.constants import CHANNEL_NOT_FOUND
from ircslack.core.errors import SlackAPIError, SlackRemoteError

if TYPE_CHECKING:
    from ircslack.api import SlackClient


@dataclass(frozen=True)
class DisplayMessage:
    """A backlog line ready for rendering."""

    user: str | None
    text: str
    ts: float


def normalize_message(message: Mapping[str, Any]) -> tuple[str | None, str] | None:
    """Return ``(user_id, text)`` for renderable messages, None otherwise.

    Edited messages carry their current content in the nested ``message``
    payload; every other subtype (joins, bots, topic changes...) is dropped.
    """
    if message.get("type", "message") != "message":
        return None
    subtype = message.get("subtype")
    if subtype == "message_changed":
        inner = message.get("message") or {}
        return inner.get("user"), inner.get("text") or ""
    if subtype:
        return None
    return message.get("user"), message.get("text") or ""


def _parse_ts(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


class HistoryFetcher:
    """Fetches recent messages of a Slack channel or private group."""

    def __init__(self, client: SlackClient, cache: IdentifierCache) -> None:
        self._client = client
        self._cache = cache

    def _history(self, resource: str, channel_id: str, count: int) -> list[dict[str, Any]]:
        payload = self._client.call(
            "GET",
            f"{resource}.history",
            {"channel": channel_id, "count": count},
        )
        return list(payload.get("messages") or [])

    def _messages(self, name: str, count: int) -> list[dict[str, Any]]:
        kind = self._cache.classify(name)
        if isinstance(kind, PublicChannel):
            try:
                return self._history("channels", kind.id, count)
            except SlackRemoteError as exc:
                if exc.code != CHANNEL_NOT_FOUND:
                    raise
                # The channel list was stale; see if it is a private group now.
                logger.debug("{} not a public channel any more, retrying as group", name)
                kind = self._cache.classify(name, force=True)
        if isinstance(kind, PrivateGroup):
            return self._history("groups", kind.id, count)
        if isinstance(kind, DirectMessage):
            # TODO: map the nick to its IM channel ID via im.list to support DMs.
            logger.debug("No history for {}: direct messages are not supported", name)
        return []

    def fetch_log(self, channel_name: str, count: int) -> list[DisplayMessage]:
        """Backlog for ``channel_name``, oldest first."""
        name = channel_name[1:] if channel_name.startswith("#") else channel_name
        try:
            messages = self._messages(name, count)
        except SlackAPIError as exc:
            logger.debug("Skipping backlog for {}: {}", name, exc)
            return []

        backlog: list[DisplayMessage] = []
        for message in reversed(messages):
            normalized = normalize_message(message)
            if normalized is None:
                continue
            user_id, text = normalized
            user = self._cache.resolve("users", user_id) if user_id else None
            backlog.append(DisplayMessage(user=user, text=text, ts=_parse_ts(message.get("ts"))))
        logger.debug("Fetched {} backlog messages for {}", len(backlog), name)
        return backlog
