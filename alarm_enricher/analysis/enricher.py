"""AlarmEnricher — orchestrates the fetch→discover→query→classify pipeline."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import structlog

from alarm_enricher.analysis.batch import MAX_QUERIES_PER_REQUEST, BatchEvaluator
from alarm_enricher.analysis.discovery import MetricDiscoverer
from alarm_enricher.analysis.exceptions import (
    AlarmLookupError,
    AlarmNotFoundError,
    DiscoveryError,
)
from alarm_enricher.analysis.periods import evaluation_window
from alarm_enricher.analysis.protocols import AlarmSource, MetricCatalog, TimeSeriesSource
from alarm_enricher.core.types import AlarmDescriptor, EnrichedResult

Clock = Callable[[], datetime]

# Values of EnrichedResult.metadata["status"]
STATUS_RESOLVED = "resolved"
STATUS_UNSUPPORTED = "unsupported"
STATUS_NO_METRICS = "no_metrics"
STATUS_NO_VIOLATIONS = "no_violations"
STATUS_VIOLATING = "violating"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AlarmEnricher:
    """Identifies the specific metrics violating a fired alarm's threshold.

    Alarms not in ALARM state short-circuit with a ``resolved`` result and no
    further calls. Otherwise the richest metrics under the alarm's dimension
    filter are discovered, their recent data is fetched for one evaluation
    window ending at an aligned period boundary, and each latest value is
    classified against the threshold.

    Usage::

        enricher = AlarmEnricher(cw, cw, cw)
        result = await enricher.enrich("HighCPU")
    """

    def __init__(
        self,
        alarms: AlarmSource,
        catalog: MetricCatalog,
        series: TimeSeriesSource,
        batch_size: int = MAX_QUERIES_PER_REQUEST,
        clock: Clock | None = None,
        logger: Any | None = None,
    ) -> None:
        self._alarms = alarms
        self._clock = clock or _utcnow
        self._logger = logger or structlog.stdlib.get_logger()
        self._discoverer = MetricDiscoverer(catalog, logger=self._logger)
        self._evaluator = BatchEvaluator(series, batch_size=batch_size, logger=self._logger)

    async def enrich(self, alarm_name: str) -> EnrichedResult:
        log = self._logger.bind(alarm_name=alarm_name)

        alarm = await self._fetch(alarm_name)
        result = EnrichedResult(alarm=alarm, timestamp=self._clock())

        if not alarm.in_alarm:
            log.info("alarm_not_in_alarm_state", state=alarm.state.value)
            result.metadata["status"] = STATUS_RESOLVED
            return result

        if not alarm.has_single_metric:
            log.info("alarm_has_no_single_metric")
            result.metadata["status"] = STATUS_UNSUPPORTED
            return result

        try:
            metrics = await self._discoverer.discover(
                alarm.namespace, alarm.metric_name, alarm.dimensions
            )
        except Exception as exc:
            raise DiscoveryError(alarm_name, str(exc)) from exc

        if not metrics:
            log.warning(
                "no_metrics_found",
                namespace=alarm.namespace,
                metric_name=alarm.metric_name,
            )
            result.metadata["status"] = STATUS_NO_METRICS
            return result

        start, end = evaluation_window(
            result.timestamp, alarm.period, alarm.evaluation_periods
        )
        violating = await self._evaluator.evaluate(alarm, metrics, start, end)

        if not violating:
            log.warning(
                "no_violations_found",
                namespace=alarm.namespace,
                metric_name=alarm.metric_name,
                candidates=len(metrics),
            )
            result.metadata["status"] = STATUS_NO_VIOLATIONS
            return result

        log.info(
            "alarm_enriched",
            candidates=len(metrics),
            violating=len(violating),
            start=start.isoformat(),
            end=end.isoformat(),
        )
        result.violating_metrics = violating
        result.metadata["status"] = STATUS_VIOLATING
        return result

    async def _fetch(self, alarm_name: str) -> AlarmDescriptor:
        try:
            alarm = await self._alarms.fetch_alarm(alarm_name)
        except Exception as exc:
            raise AlarmLookupError(alarm_name, str(exc)) from exc
        if alarm is None:
            raise AlarmNotFoundError(alarm_name, "not found")
        return alarm
