"""Slack features for IRC clients connected to the Slack IRC gateway."""

__version__ = "0.2.0"
