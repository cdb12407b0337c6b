"""Batched metric data queries and per-candidate violation classification."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

import structlog

from alarm_enricher.analysis.classifier import violates_alarm
from alarm_enricher.analysis.exceptions import BatchEvaluationError
from alarm_enricher.analysis.protocols import TimeSeriesSource
from alarm_enricher.core.types import (
    AlarmDescriptor,
    DataPointSeries,
    MetricDescriptor,
    MetricQuery,
    ViolatingMetric,
)

# GetMetricData accepts at most 500 queries per request.
MAX_QUERIES_PER_REQUEST = 500


def build_queries(
    metrics: Sequence[MetricDescriptor],
    period: int,
    statistic: str,
) -> list[MetricQuery]:
    """One query per metric; ids are ``m<index>`` into ``metrics``."""
    return [
        MetricQuery(id=f"m{i}", metric=metric, period=period, statistic=statistic)
        for i, metric in enumerate(metrics)
    ]


def chunk(queries: Sequence[MetricQuery], size: int) -> list[list[MetricQuery]]:
    """Split into consecutive chunks of at most ``size`` queries."""
    if size < 1:
        raise ValueError(f"chunk size must be positive, got {size}")
    return [list(queries[i:i + size]) for i in range(0, len(queries), size)]


class BatchEvaluator:
    """Queries recent data for candidate metrics and keeps the violating ones.

    Batches run strictly one after another. A failure on any batch aborts the
    evaluation and discards results gathered from earlier batches.
    """

    def __init__(
        self,
        source: TimeSeriesSource,
        batch_size: int = MAX_QUERIES_PER_REQUEST,
        logger: Any | None = None,
    ) -> None:
        self._source = source
        self._logger = logger or structlog.stdlib.get_logger()
        self._batch_size = max(1, min(batch_size, MAX_QUERIES_PER_REQUEST))

    @property
    def batch_size(self) -> int:
        return self._batch_size

    async def evaluate(
        self,
        alarm: AlarmDescriptor,
        metrics: Sequence[MetricDescriptor],
        start: datetime,
        end: datetime,
    ) -> list[ViolatingMetric]:
        queries = build_queries(metrics, alarm.period, alarm.statistic)
        violating: list[ViolatingMetric] = []

        for batch_index, batch in enumerate(chunk(queries, self._batch_size)):
            offset = batch_index * self._batch_size
            try:
                results = await self._source.query_recent_data(batch, start, end)
            except Exception as exc:
                raise BatchEvaluationError(alarm.name, str(exc), batch_index) from exc

            if len(results) != len(batch):
                raise BatchEvaluationError(
                    alarm.name,
                    f"expected {len(batch)} series, got {len(results)}",
                    batch_index,
                )

            found = self._classify(alarm, metrics, batch, results, offset, batch_index)
            self._logger.debug(
                "batch_evaluated",
                alarm_name=alarm.name,
                batch_index=batch_index,
                queries=len(batch),
                violating=len(found),
            )
            violating.extend(found)

        return violating

    @staticmethod
    def _classify(
        alarm: AlarmDescriptor,
        metrics: Sequence[MetricDescriptor],
        batch: Sequence[MetricQuery],
        results: Sequence[DataPointSeries],
        offset: int,
        batch_index: int,
    ) -> list[ViolatingMetric]:
        found: list[ViolatingMetric] = []
        for i, series in enumerate(results):
            if series.id != batch[i].id:
                raise BatchEvaluationError(
                    alarm.name,
                    f"series {series.id!r} out of order, expected {batch[i].id!r}",
                    batch_index,
                )
            latest = series.latest
            if latest is None:
                continue
            timestamp, value = latest
            if not violates_alarm(value, alarm):
                continue
            metric = metrics[offset + i]
            found.append(
                ViolatingMetric(
                    value=value,
                    dimensions=metric.dimension_map(),
                    timestamp=timestamp,
                )
            )
        return found
