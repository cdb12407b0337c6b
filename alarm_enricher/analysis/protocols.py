"""Collaborator contracts consumed by the analysis engine."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from datetime import datetime
from typing import Protocol, runtime_checkable

from alarm_enricher.core.types import (
    AlarmDescriptor,
    DataPointSeries,
    Dimension,
    MetricDescriptor,
    MetricQuery,
)


@runtime_checkable
class AlarmSource(Protocol):
    """Looks up an alarm's definition and current state."""

    async def fetch_alarm(self, name: str) -> AlarmDescriptor | None:
        """Return the alarm, or None when no metric alarm has that name."""
        ...


@runtime_checkable
class MetricCatalog(Protocol):
    """Paged listing of known metrics."""

    def list_metrics(
        self,
        namespace: str,
        metric_name: str,
        dimensions: Sequence[Dimension],
    ) -> AsyncIterator[list[MetricDescriptor]]:
        """Yield pages of metrics carrying at least ``dimensions`` with matching values."""
        ...


@runtime_checkable
class TimeSeriesSource(Protocol):
    """Batched query for recent data points."""

    async def query_recent_data(
        self,
        queries: Sequence[MetricQuery],
        start: datetime,
        end: datetime,
    ) -> list[DataPointSeries]:
        """Return one ascending series per query, in query order."""
        ...
