"""Slack plugin: wires host signals to backlog fetching and read-marker sync."""

from __future__ import annotations

import time
from datetime import datetime

from loguru import logger

from ircslack.api import SlackClient
from ircslack.cache import Clock, IdentifierCache
from ircslack.config import Config, cfg
from ircslack.core.constants import ACTIVE_WINDOW, SETTING_LOGLINES, SETTING_TOKEN
from ircslack.events import (
    ChannelJoined,
    Command,
    Dispatcher,
    MessagePublic,
    ServerConnected,
    ServerDisconnected,
    SetupChanged,
    WindowChanged,
    command,
    dispatcher,
)
from ircslack.history import HistoryFetcher
from ircslack.host import Channel, Host, MessageLevel, Window
from ircslack.marker import ReadMarkReconciler, is_slack_server

THEME_NAME = "slackmsg"
THEME_TEMPLATE = "{timestamp $3} {pubmsgnick $2 {pubnick $0}}$1"
MARK_COMMAND = "mark"

_HANDLED = (
    ServerConnected,
    ServerDisconnected,
    ChannelJoined,
    WindowChanged,
    MessagePublic,
    SetupChanged,
    Command,
)


def setup_logging(host: Host) -> int:
    """Replace loguru's handlers with one forwarding ERROR and above to the host.

    The default stderr handler would draw over the client's screen. Returns
    the sink id.
    """

    def sink(message) -> None:
        host.print(message.record["message"], MessageLevel.CLIENTERROR)

    logger.remove()
    return logger.add(sink, level="ERROR", format="{message}")


def format_time(ts: float) -> str:
    return datetime.fromtimestamp(ts).strftime("%H:%M")


class SlackPlugin:
    """Event target for host signals. One instance per loaded plugin."""

    def __init__(
        self,
        host: Host,
        *,
        config: Config | None = None,
        client: SlackClient | None = None,
        clock: Clock = time.time,
    ) -> None:
        self._host = host
        self._config = config or cfg
        self._client = client or SlackClient(
            self.token,
            base_url=self._config.slack_base_url,
            timeout=self._config.slack_timeout_seconds,
        )
        self._cache = IdentifierCache(self._client, ttl=self._config.cache_ttl_seconds, clock=clock)
        self._history = HistoryFetcher(self._client, self._cache)
        self._marker = ReadMarkReconciler(
            self._client,
            self._cache,
            server_pattern=self._config.server_pattern,
        )
        self._slack_servers: set[str] = set()
        self._log_sink: int | None = None
        self._dispatcher: Dispatcher | None = None

    @property
    def cache(self) -> IdentifierCache:
        return self._cache

    @property
    def history(self) -> HistoryFetcher:
        return self._history

    @property
    def marker(self) -> ReadMarkReconciler:
        return self._marker

    def token(self) -> str:
        return self._host.settings_get_str(SETTING_TOKEN)

    def _is_slack(self, server) -> bool:
        return is_slack_server(server, self._config.server_pattern)

    def register_settings(self) -> None:
        self._host.settings_add_str(SETTING_TOKEN, self._config.default_token)
        self._host.settings_add_int(SETTING_LOGLINES, self._config.default_loglines)
        self._host.theme_register(THEME_NAME, THEME_TEMPLATE)

    def load(self, events: Dispatcher = dispatcher) -> None:
        """Register settings, theme, command and signal handling with the host."""
        self.register_settings()
        self._host.command_bind(
            MARK_COMMAND,
            lambda args: events.dispatch("command", command(MARK_COMMAND, args)[1]),
        )
        self._log_sink = setup_logging(self._host)
        events.register(self)
        self._dispatcher = events
        logger.debug("Slack plugin loaded")

    def unload(self) -> None:
        if self._dispatcher is not None:
            self._dispatcher.unregister(self)
            self._dispatcher = None
        self._host.command_unbind(MARK_COMMAND)
        if self._log_sink is not None:
            logger.remove(self._log_sink)
            self._log_sink = None
        self._client.close()

    def accept_event(self, source: str, evt: object) -> bool:
        return isinstance(evt, _HANDLED)

    def push_event(self, source: str, evt: object) -> None:
        if isinstance(evt, ServerConnected):
            if self._is_slack(evt.server):
                self._slack_servers.add(evt.server.tag)
                logger.debug("Slack server {} connected", evt.server.tag)
        elif isinstance(evt, ServerDisconnected):
            self._slack_servers.discard(evt.server.tag)
        elif isinstance(evt, ChannelJoined):
            self._on_channel_joined(evt.channel)
        elif isinstance(evt, WindowChanged):
            self._marker.reconcile(evt.window)
        elif isinstance(evt, MessagePublic):
            self._on_message_public(evt)
        elif isinstance(evt, SetupChanged):
            self._cache.snapshot("users")
        elif isinstance(evt, Command) and evt.name == MARK_COMMAND:
            self.cmd_mark(evt.args)

    def _on_channel_joined(self, channel: Channel) -> None:
        # Joins only matter while a Slack gateway connection is up.
        if not self._slack_servers or not self._is_slack(channel.server):
            return
        if not self._client.enabled:
            return
        self.print_backlog(channel)

    def _on_message_public(self, evt: MessagePublic) -> None:
        window = self._host.active_window()
        if window is None or window.active is None:
            return
        # Scrolled up: the new line is not on screen yet.
        if window.active.type == "CHANNEL" and window.active.name == evt.target and window.bottom:
            self._marker.reconcile(window)

    def print_backlog(self, channel: Channel, count: int | None = None) -> int:
        """Render the channel backlog into its window. Returns the number of lines."""
        if count is None:
            count = self._host.settings_get_int(SETTING_LOGLINES)
        backlog = self._history.fetch_log(channel.name, count)
        for message in backlog:
            self._host.printformat(
                channel,
                MessageLevel.PUBLIC,
                THEME_NAME,
                message.user or "",
                message.text,
                "+",
                format_time(message.ts),
            )
        return len(backlog)

    def cmd_mark(self, args: str) -> list[float | None]:
        """/mark [ACTIVE] [window names...]: push read markers for those windows."""
        names = set(args.split())
        selected: list[Window] = []
        if ACTIVE_WINDOW in names:
            active = self._host.active_window()
            if active is not None:
                selected.append(active)
        for window in self._host.windows():
            if window.name in names and all(window is not w for w in selected):
                selected.append(window)
        return [self._marker.reconcile(window) for window in selected]


def register(host: Host) -> SlackPlugin:
    """Entry point for host script loaders."""
    plugin = SlackPlugin(host)
    plugin.load()
    return plugin
