#!/usr/bin/env python3
"""Enrich a CloudWatch alarm from the command line.

Usage::

    # Print the formatted message without dispatching it
    python scripts/enrich.py HighCPU --dry-run

    # Print the JSON payload instead of text
    python scripts/enrich.py HighCPU --dry-run --format json

    # Enrich and send to the configured destination
    python scripts/enrich.py HighCPU --config config/settings.yaml
"""

from __future__ import annotations

import argparse
import asyncio
import sys

import structlog

from alarm_enricher.analysis.enricher import AlarmEnricher
from alarm_enricher.analysis.exceptions import AlarmNotFoundError, EnrichmentError
from alarm_enricher.cloudwatch.client import CloudWatchClient
from alarm_enricher.core.config import load_settings
from alarm_enricher.core.exceptions import ConfigError
from alarm_enricher.core.logging import setup_logging
from alarm_enricher.dispatch.exceptions import DispatchError
from alarm_enricher.dispatch.factory import create_sender
from alarm_enricher.dispatch.formatters import JSONFormatter, MessageFormatter, TextFormatter

logger = structlog.get_logger(__name__)


async def run(args: argparse.Namespace) -> int:
    """Enrich one alarm and print or dispatch the result."""
    settings = load_settings(args.config)
    setup_logging(level=args.log_level, fmt=args.log_format, stream=sys.stderr)

    async with CloudWatchClient(
        region=args.region or settings.aws.region or None,
        recently_active_only=settings.enrichment.recently_active_only,
    ) as cw:
        enricher = AlarmEnricher(
            alarms=cw,
            catalog=cw,
            series=cw,
            batch_size=settings.enrichment.max_queries_per_batch,
        )
        try:
            async with asyncio.timeout(settings.enrichment.timeout_secs):
                result = await enricher.enrich(args.alarm_name)
        except AlarmNotFoundError:
            print(f"Alarm not found: {args.alarm_name}", file=sys.stderr)
            return 1
        except (EnrichmentError, TimeoutError) as exc:
            logger.error("enrichment_failed", error=str(exc))
            return 1

    if args.dry_run:
        formatter: MessageFormatter = JSONFormatter() if args.format == "json" else TextFormatter()
        print(formatter.format(result))
        return 0

    try:
        sender = create_sender(settings.dispatch, settings.aws)
    except ConfigError as exc:
        print(f"Cannot dispatch: {exc}", file=sys.stderr)
        return 2

    try:
        await sender.send(result)
    except DispatchError as exc:
        logger.error("dispatch_failed", error=str(exc))
        return 1
    finally:
        await sender.close()

    logger.info(
        "alarm_dispatched",
        alarm_name=result.alarm.name,
        target=sender.target,
        violating=len(result.violating_metrics),
    )
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Enrich a CloudWatch alarm with the metrics violating its threshold.",
    )
    parser.add_argument("alarm_name", help="Name of the CloudWatch metric alarm")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML (default: config/settings.yaml)",
    )
    parser.add_argument("--region", default=None, help="AWS region override")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the formatted message instead of dispatching it",
    )
    parser.add_argument(
        "--format",
        choices=("text", "json"),
        default="text",
        help="Output format for --dry-run (default: text)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level override: DEBUG, INFO, WARNING, ERROR",
    )
    parser.add_argument(
        "--log-format",
        default="console",
        help="Log renderer: console or json (default: console)",
    )
    args = parser.parse_args()

    code = asyncio.run(run(args))
    sys.exit(code)


if __name__ == "__main__":
    main()
