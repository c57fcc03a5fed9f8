"""Command line entrypoint: backlog dumps and identifier lookups without an IRC client."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from loguru import logger

from ircslack import __version__
from ircslack.config import Config, cfg, load_config_with_env
from ircslack.core.constants import RESOURCES, SETTING_TOKEN
from ircslack.core.errors import SlackConfigurationError
from ircslack.host import Channel, ConsoleHost, Server
from ircslack.plugin import SlackPlugin


def setup_logging(verbose: bool = False) -> None:
    """Configure loguru. Replace default logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else "WARNING",
        format=(
            "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
            "<cyan>{name}</cyan> | {message}"
        ),
    )


def reload_config(config_path: Path) -> Config:
    """Load config from path and update global cfg."""
    data = load_config_with_env(config_path)
    cfg.reload(data)
    return cfg


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ircslack",
        description="Slack backlog and identifier lookups for the Slack IRC gateway",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument("--token", help="Slack API token (default: config or SLACK_TOKEN)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    sub = parser.add_subparsers(dest="command", required=True)

    backlog = sub.add_parser("backlog", help="Print recent messages of a channel")
    backlog.add_argument("channel", help="Channel or private group name")
    backlog.add_argument("--count", "-n", type=int, default=None, help="Number of messages")

    resolve = sub.add_parser("resolve", help="Resolve a user ID or a channel/group name")
    resolve.add_argument("resource", choices=RESOURCES)
    resolve.add_argument("key")
    resolve.add_argument("--force", action="store_true", help="Refresh the listing first")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entrypoint."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        config = reload_config(args.config)
    except SlackConfigurationError as exc:
        logger.error("Invalid config {}: {}", args.config, exc)
        return 2

    host = ConsoleHost()
    plugin = SlackPlugin(host, config=config)
    plugin.register_settings()
    if args.token:
        host.settings_set(SETTING_TOKEN, args.token)
    if not plugin.token():
        logger.error("No Slack token: pass --token, set SLACK_TOKEN or slack_token in {}", args.config)
        plugin.unload()
        return 2

    try:
        if args.command == "backlog":
            channel = Channel(name=args.channel, server=Server(tag="slack", address="cli"))
            plugin.print_backlog(channel, args.count)
            return 0

        value = plugin.cache.resolve(args.resource, args.key, args.force)
        if value is None:
            logger.warning("{} not found in {}", args.key, args.resource)
            return 1
        print(value)
        return 0
    finally:
        plugin.unload()


if __name__ == "__main__":
    sys.exit(main())
