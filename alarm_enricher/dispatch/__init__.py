"""Notification dispatch — formatters and destination senders."""

from alarm_enricher.dispatch.exceptions import DispatchError
from alarm_enricher.dispatch.factory import create_sender
from alarm_enricher.dispatch.formatters import (
    JSONFormatter,
    MessageFormatter,
    TextFormatter,
    comparison_symbol,
    format_dimensions,
)
from alarm_enricher.dispatch.senders import (
    EventBridgeSender,
    Sender,
    SlackSender,
    SNSSender,
    TeamsSender,
    WebhookSender,
)

__all__ = [
    "DispatchError",
    "EventBridgeSender",
    "JSONFormatter",
    "MessageFormatter",
    "SNSSender",
    "Sender",
    "SlackSender",
    "TeamsSender",
    "TextFormatter",
    "WebhookSender",
    "comparison_symbol",
    "create_sender",
    "format_dimensions",
]
