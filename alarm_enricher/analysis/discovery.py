"""Metric discovery — finds the most dimensionally specific metrics behind an alarm."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

import structlog

from alarm_enricher.analysis.protocols import MetricCatalog
from alarm_enricher.core.types import Dimension, MetricDescriptor


class RichestMetricSelector:
    """Running reduction keeping only metrics at the highest dimension count seen.

    Starts at the filter size, so metrics carrying fewer dimensions than the
    alarm's own filter are never kept. A strictly richer metric resets the
    candidate list; metrics at the current level are appended.
    """

    def __init__(self, filter_size: int) -> None:
        self.max_dimensions = filter_size
        self.candidates: list[MetricDescriptor] = []
        self.seen = 0

    def add(self, metric: MetricDescriptor) -> None:
        self.seen += 1
        count = metric.dimension_count
        if count < self.max_dimensions:
            return
        if count > self.max_dimensions:
            self.candidates = [metric]
            self.max_dimensions = count
        else:
            self.candidates.append(metric)

    def add_page(self, page: Iterable[MetricDescriptor]) -> None:
        for metric in page:
            self.add(metric)


def select_richest(
    pages: Iterable[Iterable[MetricDescriptor]],
    filter_size: int,
) -> list[MetricDescriptor]:
    """Reduce fully materialised pages to the richest candidate set."""
    selector = RichestMetricSelector(filter_size)
    for page in pages:
        selector.add_page(page)
    return selector.candidates


class MetricDiscoverer:
    """Pages through the metric catalog and keeps the most enriched metrics.

    Every page is consumed before the result is returned, so the chosen
    dimension level is the richest across the whole listing rather than
    the first page.
    """

    def __init__(self, catalog: MetricCatalog, logger: Any | None = None) -> None:
        self._catalog = catalog
        self._logger = logger or structlog.stdlib.get_logger()

    async def discover(
        self,
        namespace: str,
        metric_name: str,
        dimensions: Sequence[Dimension] = (),
    ) -> list[MetricDescriptor]:
        selector = RichestMetricSelector(len(dimensions))
        pages = 0
        async for page in self._catalog.list_metrics(namespace, metric_name, dimensions):
            pages += 1
            selector.add_page(page)

        self._logger.debug(
            "metrics_discovered",
            namespace=namespace,
            metric_name=metric_name,
            pages=pages,
            listed=selector.seen,
            candidates=len(selector.candidates),
            dimension_count=selector.max_dimensions,
        )
        return selector.candidates
