"""Notification senders — SNS, EventBridge, Slack and Teams delivery."""

from __future__ import annotations

import abc
import asyncio
from typing import Any

import aiohttp
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from alarm_enricher.core.config import EventBridgeConfig, SNSConfig
from alarm_enricher.core.types import EnrichedResult
from alarm_enricher.dispatch.exceptions import DispatchError
from alarm_enricher.dispatch.formatters import JSONFormatter, MessageFormatter, TextFormatter

logger = structlog.get_logger(__name__)

# SNS rejects subjects longer than 100 characters.
_SNS_SUBJECT_MAX = 100


class Sender(abc.ABC):
    """Base class for enriched-alarm destinations.

    Each sender owns a formatter; ``send`` renders the result and delivers
    it, raising ``DispatchError`` when delivery fails.
    """

    target = ""

    def __init__(self, formatter: MessageFormatter) -> None:
        self.formatter = formatter

    def render(self, result: EnrichedResult) -> str:
        try:
            return self.formatter.format(result)
        except Exception as exc:
            raise DispatchError(f"cannot format message for {self.target}: {exc}") from exc

    @abc.abstractmethod
    async def send(self, result: EnrichedResult) -> None:
        """Deliver the enriched result."""

    async def close(self) -> None:
        """Release resources (HTTP sessions, etc.)."""


class SNSSender(Sender):
    """Publishes a text message to an SNS topic."""

    target = "sns"

    def __init__(
        self,
        client: Any,
        config: SNSConfig,
        formatter: MessageFormatter | None = None,
    ) -> None:
        super().__init__(formatter or TextFormatter())
        self._client = client
        self._topic_arn = config.topic_arn
        self._subject_prefix = config.subject_prefix

    def subject(self, result: EnrichedResult) -> str:
        return f"{self._subject_prefix}{result.alarm.name}"[:_SNS_SUBJECT_MAX]

    async def send(self, result: EnrichedResult) -> None:
        message = self.render(result)
        try:
            await asyncio.to_thread(
                self._client.publish,
                TopicArn=self._topic_arn,
                Subject=self.subject(result),
                Message=message,
            )
        except (BotoCoreError, ClientError) as exc:
            raise DispatchError(
                f"cannot publish to SNS topic {self._topic_arn!r}: {exc}"
            ) from exc
        logger.info("sns_published", topic_arn=self._topic_arn, alarm_name=result.alarm.name)


class EventBridgeSender(Sender):
    """Puts a JSON event onto an EventBridge bus."""

    target = "eventbridge"

    def __init__(
        self,
        client: Any,
        config: EventBridgeConfig,
        formatter: MessageFormatter | None = None,
    ) -> None:
        super().__init__(formatter or JSONFormatter())
        self._client = client
        self._event_bus_arn = config.event_bus_arn
        self._source = config.source
        self._detail_type = config.detail_type

    async def send(self, result: EnrichedResult) -> None:
        detail = self.render(result)
        entry: dict[str, Any] = {
            "Detail": detail,
            "DetailType": self._detail_type,
            "EventBusName": self._event_bus_arn,
            "Source": self._source,
        }
        if result.alarm.arn:
            entry["Resources"] = [result.alarm.arn]

        try:
            resp = await asyncio.to_thread(self._client.put_events, Entries=[entry])
        except (BotoCoreError, ClientError) as exc:
            raise DispatchError(
                f"cannot put events to {self._event_bus_arn!r}: {exc}"
            ) from exc

        if resp.get("FailedEntryCount", 0):
            failed = (resp.get("Entries") or [{}])[0]
            raise DispatchError(
                f"event rejected by {self._event_bus_arn!r}: "
                f"{failed.get('ErrorCode', '')} {failed.get('ErrorMessage', '')}".strip()
            )
        logger.info(
            "eventbridge_put",
            event_bus_arn=self._event_bus_arn,
            alarm_name=result.alarm.name,
        )


class WebhookSender(Sender):
    """Posts a JSON payload to an incoming webhook."""

    def __init__(self, webhook_url: str, formatter: MessageFormatter | None = None) -> None:
        super().__init__(formatter or TextFormatter())
        self._webhook_url = webhook_url
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    @abc.abstractmethod
    def payload(self, message: str, result: EnrichedResult) -> dict[str, Any]:
        """Build the webhook request body."""

    async def send(self, result: EnrichedResult) -> None:
        body = self.payload(self.render(result), result)
        try:
            session = self._get_session()
            async with session.post(self._webhook_url, json=body) as resp:
                if 200 <= resp.status < 300:
                    logger.info(f"{self.target}_sent", alarm_name=result.alarm.name)
                    return
                status = resp.status
                text = await resp.text()
        except aiohttp.ClientError as exc:
            raise DispatchError(f"cannot post to {self.target} webhook: {exc}") from exc
        raise DispatchError(
            f"{self.target} webhook returned {status}: {text[:200]}"
        )

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None


class SlackSender(WebhookSender):
    """Delivers the text message via a Slack incoming webhook."""

    target = "slack"

    def payload(self, message: str, result: EnrichedResult) -> dict[str, Any]:
        return {"text": message}


class TeamsSender(WebhookSender):
    """Delivers the text message via a Microsoft Teams incoming webhook."""

    target = "teams"

    def payload(self, message: str, result: EnrichedResult) -> dict[str, Any]:
        return {
            "@type": "MessageCard",
            "@context": "https://schema.org/extensions",
            "summary": f"CloudWatch Alarm - {result.alarm.name}",
            # Teams renders MessageCard text as markdown; keep line breaks.
            "text": message.replace("\n", "  \n"),
        }
