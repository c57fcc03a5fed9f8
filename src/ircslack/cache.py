"""Identifier cache for Slack users, channels and private groups (TTL refresh)."""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from cachetools import TTLCache
from loguru import logger

from ircslack.core.constants import CACHE_TTL_SECONDS, RESOURCES, Resource
from ircslack.core.errors import SlackAPIError

if TYPE_CHECKING:
    from ircslack.api import SlackClient

Clock = Callable[[], float]

NEVER = float("-inf")


@dataclass(frozen=True)
class CacheEntry:
    """One listing of a resource and the time it was fetched.

    Entries are immutable and swapped as a whole, so ``data`` and
    ``refreshed_at`` always belong to the same refresh.
    """

    data: Mapping[str, str] = field(default_factory=dict)
    refreshed_at: float = NEVER


@dataclass(frozen=True)
class PublicChannel:
    id: str


@dataclass(frozen=True)
class PrivateGroup:
    id: str


@dataclass(frozen=True)
class DirectMessage:
    pass


Classification = PublicChannel | PrivateGroup | DirectMessage


def _index(resource: Resource, payload: dict[str, Any]) -> dict[str, str]:
    """Build the lookup table from a ``<resource>.list`` payload."""
    if resource == "users":
        return {
            str(member["id"]): str(member["name"])
            for member in payload.get("members") or []
            if member.get("id") and member.get("name") is not None
        }
    return {
        str(item["name"]): str(item["id"])
        for item in payload.get(resource) or []
        if item.get("name") is not None and item.get("id")
    }


class IdentifierCache:
    """Lazily refreshed lookup tables for Slack identifiers.

    ``users`` maps user ID -> user name; ``channels`` and ``groups`` map
    name -> ID. A table is re-listed in full when a lookup is forced, when the
    key is missing, or when the table is older than ``ttl`` seconds. Failed
    refreshes keep the previous table so an outage serves stale names.
    """

    def __init__(
        self,
        client: SlackClient,
        *,
        ttl: float = CACHE_TTL_SECONDS,
        clock: Clock = time.time,
    ) -> None:
        self._client = client
        self._clock = clock
        self._entries: dict[Resource, CacheEntry] = {r: CacheEntry() for r in RESOURCES}
        # Holds a resource only while its entry is younger than the TTL.
        self._fresh: TTLCache[Resource, CacheEntry] = TTLCache(
            maxsize=len(RESOURCES),
            ttl=float(ttl),
            timer=clock,
        )

    def entry(self, resource: Resource) -> CacheEntry:
        return self._entries[resource]

    def is_fresh(self, resource: Resource) -> bool:
        return self._fresh.get(resource) is self._entries[resource]

    def refresh(self, resource: Resource) -> bool:
        """Re-list ``resource`` and swap the table in. Returns False on failure."""
        params = {} if resource == "users" else {"exclude_archived": 1}
        try:
            payload = self._client.call("GET", f"{resource}.list", params)
        except SlackAPIError as exc:
            logger.warning("Keeping cached {} after failed refresh: {}", resource, exc)
            return False

        entry = CacheEntry(data=_index(resource, payload), refreshed_at=self._clock())
        self._entries[resource] = entry
        self._fresh[resource] = entry
        logger.info("Refreshed {} cache: {} entries", resource, len(entry.data))
        return True

    def resolve(self, resource: Resource, key: str, force: bool = False) -> str | None:
        """Look up ``key`` in ``resource``, refreshing first when needed."""
        if resource == "users" and not self._client.enabled:
            return None

        current = self._entries[resource]
        if force or key not in current.data or not self.is_fresh(resource):
            logger.debug("{} cache miss for {!r} (force={})", resource, key, force)
            self.refresh(resource)
        return self._entries[resource].data.get(key)

    def snapshot(self, resource: Resource) -> Mapping[str, str]:
        """Current table for ``resource``, refreshed only once the TTL has run out."""
        if resource == "users" and not self._client.enabled:
            return {}
        if not self.is_fresh(resource):
            self.refresh(resource)
        return self._entries[resource].data

    def classify(self, name: str, force: bool = False) -> Classification:
        """Decide whether ``name`` is a public channel, private group or DM."""
        channel_id = self.resolve("channels", name, force)
        if channel_id:
            return PublicChannel(channel_id)
        group_id = self.resolve("groups", name, force)
        if group_id:
            return PrivateGroup(group_id)
        return DirectMessage()
