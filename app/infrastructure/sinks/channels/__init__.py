"""Sink client implementations."""

from infrastructure.sinks.channels.base import Sink
from infrastructure.sinks.channels.mattermost import MattermostSink
from infrastructure.sinks.channels.slack import SlackSink
from infrastructure.sinks.channels.teams import TeamsSink

__all__ = [
    "Sink",
    "MattermostSink",
    "SlackSink",
    "TeamsSink",
]
