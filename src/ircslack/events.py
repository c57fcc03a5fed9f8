"""Host signal types and dispatcher."""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Any, Protocol

from loguru import logger

from ircslack.host import Channel, Server, Window


@dataclass
class ServerConnected:
    server: Server


@dataclass
class ServerDisconnected:
    server: Server


@dataclass
class ChannelJoined:
    """We joined a channel; its window item is ``channel``."""

    channel: Channel


@dataclass
class WindowChanged:
    """The active window switched to ``window``."""

    window: Window


@dataclass
class MessagePublic:
    """A public message arrived in ``target`` on ``server``."""

    server: Server
    msg: str
    nick: str
    address: str
    target: str


@dataclass
class SetupChanged:
    """Settings were changed (e.g. /set slack_token)."""

    pass


@dataclass
class Command:
    """A bound command was invoked with ``args``."""

    name: str
    args: str


class EventTarget(Protocol):
    """Receiver interface: accept_event + push_event."""

    def accept_event(self, source: str, evt: object) -> bool:
        """Return True if this target wants the event."""
        ...

    def push_event(self, source: str, evt: object) -> None:
        """Handle the event."""
        ...


def event(type_name: str):
    """Decorator to mark a factory as producing an event with a given type."""

    def decorator(f: Any) -> Any:
        @functools.wraps(f)
        def wrapper(*args: Any, **kwargs: Any) -> tuple[str, object]:
            evt = f(*args, **kwargs)
            return (type_name, evt)

        wrapper.TYPE = type_name
        return wrapper

    return decorator


@event("server connected")
def server_connected(server: Server) -> ServerConnected:
    return ServerConnected(server=server)


@event("server disconnected")
def server_disconnected(server: Server) -> ServerDisconnected:
    return ServerDisconnected(server=server)


@event("channel joined")
def channel_joined(channel: Channel) -> ChannelJoined:
    return ChannelJoined(channel=channel)


@event("window changed")
def window_changed(window: Window) -> WindowChanged:
    return WindowChanged(window=window)


@event("message public")
def message_public(server: Server, msg: str, nick: str, address: str, target: str) -> MessagePublic:
    return MessagePublic(server=server, msg=msg, nick=nick, address=address, target=target)


@event("setup changed")
def setup_changed() -> SetupChanged:
    return SetupChanged()


@event("command")
def command(name: str, args: str = "") -> Command:
    return Command(name=name, args=args)


class Dispatcher:
    """Delivers host signals to registered targets. Handler errors are logged, not raised."""

    def __init__(self) -> None:
        self._targets: list[EventTarget] = []

    def register(self, target: EventTarget) -> None:
        self._targets.append(target)

    def unregister(self, target: EventTarget) -> None:
        if target in self._targets:
            self._targets.remove(target)

    def dispatch(self, source: str, evt: object) -> None:
        """Dispatch event to all targets that accept it."""
        for target in self._targets:
            try:
                if target.accept_event(source, evt):
                    target.push_event(source, evt)
            except Exception as exc:
                logger.exception("Failed to pass event to target {}: {}", target, exc)


dispatcher = Dispatcher()
