"""Slack API and gateway constants."""

from __future__ import annotations

from typing import Literal

Resource = Literal["users", "channels", "groups"]
RESOURCES: tuple[Resource, ...] = ("users", "channels", "groups")

HttpMethod = Literal["GET", "POST"]

BASE_URL = "https://slack.com/api/"
DEFAULT_TIMEOUT = 3.0
# Identifier listings are re-fetched at most this often unless forced.
CACHE_TTL_SECONDS = 4 * 60 * 60
DEFAULT_LOGLINES = 20

SLACK_SERVER_PATTERN = r"^\w+\.irc\.slack\.com"

# Setting names registered with the host client.
SETTING_TOKEN = "slack_token"
SETTING_LOGLINES = "slack_loglines"

# Pseudo window name for the mark command.
ACTIVE_WINDOW = "ACTIVE"

# Slack error for a channel ID the channels.* family does not know.
CHANNEL_NOT_FOUND = "channel_not_found"
