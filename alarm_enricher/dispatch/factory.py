"""Convenience factory selecting the configured notification sender."""

from __future__ import annotations

from typing import Any

import boto3

from alarm_enricher.core.config import AWSConfig, DispatchConfig, DispatchTarget
from alarm_enricher.core.exceptions import ConfigError
from alarm_enricher.dispatch.senders import (
    EventBridgeSender,
    Sender,
    SlackSender,
    SNSSender,
    TeamsSender,
)


def _aws_client(service: str, aws: AWSConfig, session: Any | None) -> Any:
    factory = session.client if session is not None else boto3.client
    return factory(service, region_name=aws.region or None, endpoint_url=aws.endpoint_url)


def create_sender(
    config: DispatchConfig,
    aws: AWSConfig | None = None,
    session: Any | None = None,
) -> Sender:
    """Build the sender for ``config.target``.

    Raises:
        ConfigError: the target's required destination is not configured.
    """
    aws = aws or AWSConfig()

    if config.target == DispatchTarget.SNS:
        if not config.sns.topic_arn:
            raise ConfigError("SNS_TOPIC_ARN is required for the sns destination")
        return SNSSender(_aws_client("sns", aws, session), config.sns)

    if config.target == DispatchTarget.EVENTBRIDGE:
        if not config.eventbridge.event_bus_arn:
            raise ConfigError("EVENT_BUS_ARN is required for the eventbridge destination")
        return EventBridgeSender(_aws_client("events", aws, session), config.eventbridge)

    if config.target == DispatchTarget.SLACK:
        url = config.slack.webhook_url.get_secret_value()
        if not url:
            raise ConfigError("SLACK_WEBHOOK_URL is required for the slack destination")
        return SlackSender(url)

    if config.target == DispatchTarget.TEAMS:
        url = config.teams.webhook_url.get_secret_value()
        if not url:
            raise ConfigError("TEAMS_WEBHOOK_URL is required for the teams destination")
        return TeamsSender(url)

    raise ConfigError(f"unknown dispatch target: {config.target}")
