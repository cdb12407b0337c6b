"""AWS Lambda entrypoint — wires the enricher once per container and handles events.

Configure the function handler as ``alarm_enricher.lambda_handler.handler``.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from alarm_enricher.analysis.enricher import AlarmEnricher
from alarm_enricher.cloudwatch.client import CloudWatchClient
from alarm_enricher.core.config import Settings, load_settings
from alarm_enricher.core.logging import setup_logging
from alarm_enricher.dispatch.factory import create_sender
from alarm_enricher.handler import EventHandler

logger = structlog.stdlib.get_logger()

# Leave time to flush logs and return before Lambda kills the invocation.
_DEADLINE_MARGIN_SECS = 1.0

_handler: EventHandler | None = None
_settings: Settings | None = None


async def build_handler(settings: Settings) -> EventHandler:
    """Create and connect the CloudWatch client, enricher and sender."""
    # Fails on a missing destination before the CloudWatch client is opened.
    sender = create_sender(settings.dispatch, settings.aws)
    cw = CloudWatchClient(
        region=settings.aws.region or None,
        endpoint_url=settings.aws.endpoint_url,
        recently_active_only=settings.enrichment.recently_active_only,
    )
    await cw.connect()
    enricher = AlarmEnricher(
        alarms=cw,
        catalog=cw,
        series=cw,
        batch_size=settings.enrichment.max_queries_per_batch,
    )
    logger.info(
        "enricher_started",
        target=settings.dispatch.target.value,
        region=settings.aws.region,
    )
    return EventHandler(enricher, sender)


def invocation_timeout(settings: Settings, context: Any | None) -> float:
    """Seconds this invocation may spend: the configured timeout capped by Lambda's deadline."""
    timeout = settings.enrichment.timeout_secs
    if context is not None and hasattr(context, "get_remaining_time_in_millis"):
        remaining = context.get_remaining_time_in_millis() / 1000.0 - _DEADLINE_MARGIN_SECS
        timeout = min(timeout, max(remaining, 0.0))
    return timeout


async def _run(event: dict[str, Any], context: Any | None) -> dict[str, Any]:
    global _handler, _settings  # noqa: PLW0603

    if _settings is None:
        _settings = load_settings()
        setup_logging()
    if _handler is None:
        _handler = await build_handler(_settings)

    try:
        async with asyncio.timeout(invocation_timeout(_settings, context)):
            result = await _handler.handle(event)
    finally:
        # aiohttp sessions are bound to this invocation's event loop.
        await _handler.close()

    return {
        "alarmName": result.alarm.name,
        "status": result.status,
        "violatingMetrics": len(result.violating_metrics),
    }


def handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """Lambda handler for CloudWatch "Alarm State Change" events."""
    return asyncio.run(_run(event, context))
