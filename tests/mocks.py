"""Fake host, clock and Slack client for testing without a real IRC client or network."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from ircslack.core.errors import SlackNotConfiguredError
from ircslack.host import Channel, Line, MessageLevel, Server, View, Window

SLACK_SERVER = Server(tag="slack", address="myteam.irc.slack.com")
OTHER_SERVER = Server(tag="libera", address="irc.libera.chat")


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


Response = dict[str, Any] | Exception | Callable[[Mapping[str, Any]], dict[str, Any]]


class FakeSlackClient:
    """Stands in for SlackClient. Responses are keyed by endpoint.

    A response may be a payload dict, an exception to raise, or a callable
    taking the params. Lists are consumed one item per call.
    """

    def __init__(self, responses: dict[str, Response | list[Response]] | None = None, token: str = "xoxp-test") -> None:
        self.responses: dict[str, Response | list[Response]] = dict(responses or {})
        self.token = token
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.closed = False

    @property
    def enabled(self) -> bool:
        return bool(self.token)

    def close(self) -> None:
        self.closed = True

    def endpoints(self) -> list[str]:
        return [endpoint for _, endpoint, _ in self.calls]

    def call(self, method: str, endpoint: str, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        if not self.token:
            raise SlackNotConfiguredError("No Slack token configured", code="not_configured")
        params = dict(params or {})
        self.calls.append((method, endpoint, params))
        response = self.responses.get(endpoint)
        if isinstance(response, list):
            response = response.pop(0)
        if response is None:
            raise AssertionError(f"unexpected call to {endpoint}")
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(params)
        return response


def users_payload(users: dict[str, str]) -> dict[str, Any]:
    return {"ok": True, "members": [{"id": uid, "name": name} for uid, name in users.items()]}


def channels_payload(resource: str, names: dict[str, str]) -> dict[str, Any]:
    return {"ok": True, resource: [{"name": name, "id": cid} for name, cid in names.items()]}


def history_payload(*messages: dict[str, Any]) -> dict[str, Any]:
    return {"ok": True, "messages": list(messages)}


def make_window(
    name: str = "1",
    channel: str = "#general",
    *,
    server: Server = SLACK_SERVER,
    rows: list[int] | None = None,
    times: list[float] | None = None,
    height: int = 5,
    start: int = 0,
    bottom: bool = True,
    item_type: str = "CHANNEL",
    refnum: int = 1,
) -> Window:
    """Window whose view holds one line per entry of ``rows``/``times``."""
    rows = rows if rows is not None else [1, 1, 1]
    times = times if times is not None else [100.0 + i for i in range(len(rows))]
    lines = [Line(rows=r, time=t) for r, t in zip(rows, times, strict=True)]
    return Window(
        name=name,
        refnum=refnum,
        active=Channel(name=channel, server=server, type=item_type),
        active_server=server,
        view=View(lines=lines, start=start, height=height),
        bottom=bottom,
    )


class FakeHost:
    """Records everything the plugin asks of the host."""

    def __init__(self, *, token: str = "xoxp-test", loglines: int = 20) -> None:
        self.settings: dict[str, str | int] = {}
        self.defaults: dict[str, str | int] = {}
        self.printed: list[tuple[str, MessageLevel]] = []
        self.formatted: list[tuple[Channel, MessageLevel, str, tuple[str, ...]]] = []
        self.themes: dict[str, str] = {}
        self.commands: dict[str, Callable[[str], None]] = {}
        self.window_list: list[Window] = []
        self.active: Window | None = None
        self._initial = {"slack_token": token, "slack_loglines": loglines}

    def settings_add_str(self, name: str, default: str) -> None:
        self.defaults[name] = default
        self.settings.setdefault(name, self._initial.get(name, default))

    def settings_add_int(self, name: str, default: int) -> None:
        self.defaults[name] = default
        self.settings.setdefault(name, self._initial.get(name, default))

    def settings_get_str(self, name: str) -> str:
        return str(self.settings.get(name, self._initial.get(name, "")))

    def settings_get_int(self, name: str) -> int:
        return int(self.settings.get(name, self._initial.get(name, 0)))

    def print(self, text: str, level: MessageLevel = MessageLevel.CLIENTNOTICE) -> None:
        self.printed.append((text, level))

    def theme_register(self, name: str, template: str) -> None:
        self.themes[name] = template

    def printformat(self, channel: Channel, level: MessageLevel, name: str, *args: str) -> None:
        self.formatted.append((channel, level, name, args))

    def command_bind(self, name: str, handler: Callable[[str], None]) -> None:
        self.commands[name] = handler

    def command_unbind(self, name: str) -> None:
        self.commands.pop(name, None)

    def active_window(self) -> Window | None:
        return self.active

    def windows(self) -> list[Window]:
        return list(self.window_list)
