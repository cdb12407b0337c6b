"""Metric violation analysis — discovery, alignment, batching and classification."""

from alarm_enricher.analysis.batch import (
    MAX_QUERIES_PER_REQUEST,
    BatchEvaluator,
    build_queries,
    chunk,
)
from alarm_enricher.analysis.classifier import is_violating, violates_alarm
from alarm_enricher.analysis.discovery import (
    MetricDiscoverer,
    RichestMetricSelector,
    select_richest,
)
from alarm_enricher.analysis.enricher import AlarmEnricher
from alarm_enricher.analysis.exceptions import (
    AlarmLookupError,
    AlarmNotFoundError,
    BatchEvaluationError,
    DiscoveryError,
    EnrichmentError,
)
from alarm_enricher.analysis.periods import align_to_period, evaluation_window
from alarm_enricher.analysis.protocols import AlarmSource, MetricCatalog, TimeSeriesSource

__all__ = [
    "MAX_QUERIES_PER_REQUEST",
    "AlarmEnricher",
    "AlarmLookupError",
    "AlarmNotFoundError",
    "AlarmSource",
    "BatchEvaluationError",
    "BatchEvaluator",
    "DiscoveryError",
    "EnrichmentError",
    "MetricCatalog",
    "MetricDiscoverer",
    "RichestMetricSelector",
    "TimeSeriesSource",
    "align_to_period",
    "build_queries",
    "chunk",
    "evaluation_window",
    "is_violating",
    "select_richest",
    "violates_alarm",
]
