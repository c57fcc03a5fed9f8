"""Host IRC client boundary: window/view records and the runtime protocol."""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Protocol

ItemType = Literal["CHANNEL", "QUERY"]


class MessageLevel(str, Enum):
    """Print levels understood by the host."""

    PUBLIC = "PUBLIC"
    CLIENTNOTICE = "CLIENTNOTICE"
    CLIENTERROR = "CLIENTERROR"


@dataclass
class Server:
    """A connected IRC server."""

    tag: str
    address: str


@dataclass
class Channel:
    """A window item: a joined channel or a query."""

    name: str
    server: Server
    type: ItemType = "CHANNEL"


@dataclass
class Line:
    """One rendered line: rows it occupies on screen and its message time."""

    rows: int
    time: float


@dataclass
class View:
    """Scrollback of a window. ``start`` indexes the first visible line."""

    lines: list[Line] = field(default_factory=list)
    start: int = 0
    height: int = 0

    def visible(self) -> list[Line]:
        """Lines from the first visible one to the end of the buffer."""
        return self.lines[self.start :]


@dataclass
class Window:
    """A host window with its active item and view."""

    name: str
    refnum: int
    active: Channel | None = None
    active_server: Server | None = None
    view: View = field(default_factory=View)
    bottom: bool = True


CommandHandler = Callable[[str], None]


class Host(Protocol):
    """Services the plugin consumes from the IRC client runtime."""

    def settings_add_str(self, name: str, default: str) -> None: ...

    def settings_add_int(self, name: str, default: int) -> None: ...

    def settings_get_str(self, name: str) -> str: ...

    def settings_get_int(self, name: str) -> int: ...

    def print(self, text: str, level: MessageLevel = MessageLevel.CLIENTNOTICE) -> None: ...

    def theme_register(self, name: str, template: str) -> None: ...

    def printformat(self, channel: Channel, level: MessageLevel, name: str, *args: str) -> None: ...

    def command_bind(self, name: str, handler: CommandHandler) -> None: ...

    def command_unbind(self, name: str) -> None: ...

    def active_window(self) -> Window | None: ...

    def windows(self) -> list[Window]: ...


# Minimal stand-ins for the theme abstracts used by our templates.
_ABSTRACTS = {
    "timestamp": "{0}",
    "pubmsgnick": "<{0}{1}> ",
    "pubnick": "{0}",
}
_ABSTRACT_RE = re.compile(r"\{(\w+) ([^{}]*)\}")
_ARG_RE = re.compile(r"\$(\d)")


def render_template(template: str, args: tuple[str, ...]) -> str:
    """Expand ``{abstract ...}`` blocks, then ``$N`` arguments, to plain text."""

    def expand(match: re.Match[str]) -> str:
        fmt = _ABSTRACTS.get(match.group(1), "{0}")
        slots = fmt.count("{")
        parts = match.group(2).split(" ", slots - 1) if slots > 1 else [match.group(2)]
        parts += [""] * (slots - len(parts))
        return fmt.format(*parts)

    def argument(match: re.Match[str]) -> str:
        index = int(match.group(1))
        return args[index] if index < len(args) else ""

    text = template
    while True:
        expanded = _ABSTRACT_RE.sub(expand, text)
        if expanded == text:
            break
        text = expanded
    return _ARG_RE.sub(argument, text)


class ConsoleHost:
    """In-memory host printing to stdout. Used by the command line entrypoint."""

    def __init__(self) -> None:
        self._settings: dict[str, str | int] = {}
        self._themes: dict[str, str] = {}
        self._commands: dict[str, CommandHandler] = {}
        self._windows: list[Window] = []

    def settings_add_str(self, name: str, default: str) -> None:
        self._settings.setdefault(name, default)

    def settings_add_int(self, name: str, default: int) -> None:
        self._settings.setdefault(name, default)

    def settings_set(self, name: str, value: str | int) -> None:
        self._settings[name] = value

    def settings_get_str(self, name: str) -> str:
        return str(self._settings.get(name, ""))

    def settings_get_int(self, name: str) -> int:
        return int(self._settings.get(name, 0))

    def print(self, text: str, level: MessageLevel = MessageLevel.CLIENTNOTICE) -> None:
        print(text)

    def theme_register(self, name: str, template: str) -> None:
        self._themes[name] = template

    def printformat(self, channel: Channel, level: MessageLevel, name: str, *args: str) -> None:
        print(render_template(self._themes.get(name, "$1"), args))

    def command_bind(self, name: str, handler: CommandHandler) -> None:
        self._commands[name] = handler

    def command_unbind(self, name: str) -> None:
        self._commands.pop(name, None)

    def active_window(self) -> Window | None:
        return self._windows[0] if self._windows else None

    def windows(self) -> list[Window]:
        return list(self._windows)
