"""Event handler — turns a CloudWatch alarm state-change event into a dispatched enrichment."""

from __future__ import annotations

from typing import Any

import structlog

from alarm_enricher.analysis.enricher import AlarmEnricher
from alarm_enricher.core.exceptions import InvalidEventError
from alarm_enricher.core.types import EnrichedResult
from alarm_enricher.dispatch.senders import Sender

logger = structlog.stdlib.get_logger()


def parse_alarm_name(event: dict[str, Any]) -> str:
    """Extract ``detail.alarmName`` from an EventBridge alarm state-change event."""
    detail = event.get("detail")
    if not isinstance(detail, dict):
        raise InvalidEventError("event has no detail object")
    alarm_name = detail.get("alarmName")
    if not isinstance(alarm_name, str) or not alarm_name:
        raise InvalidEventError("alarm name is empty")
    return alarm_name


class EventHandler:
    """Enriches the alarm named by an event and sends the result.

    Failures are logged and re-raised so the invoking platform can apply
    its own retry policy.
    """

    def __init__(self, enricher: AlarmEnricher, sender: Sender) -> None:
        self._enricher = enricher
        self._sender = sender

    async def handle(self, event: dict[str, Any]) -> EnrichedResult:
        try:
            alarm_name = parse_alarm_name(event)
        except InvalidEventError:
            logger.exception("invalid_event", event_id=event.get("id", ""))
            raise

        account_id = str(event.get("account") or "")
        with structlog.contextvars.bound_contextvars(
            alarm_name=alarm_name,
            account_id=account_id,
        ):
            try:
                result = await self._enricher.enrich(alarm_name)
            except Exception:
                logger.exception("enrichment_failed")
                raise

            result.account_id = account_id

            try:
                await self._sender.send(result)
            except Exception:
                logger.exception("dispatch_failed", target=self._sender.target)
                raise

            logger.info(
                "alarm_dispatched",
                target=self._sender.target,
                status=result.status,
                violating=len(result.violating_metrics),
            )
            return result

    async def close(self) -> None:
        await self._sender.close()
