"""Core module — config, types, logging, exceptions."""

from alarm_enricher.core.config import (
    DispatchTarget,
    Settings,
    get_settings,
    load_settings,
    reset_settings,
)
from alarm_enricher.core.exceptions import ConfigError, EnricherError, InvalidEventError
from alarm_enricher.core.logging import setup_logging
from alarm_enricher.core.types import (
    AlarmDescriptor,
    AlarmState,
    ComparisonOperator,
    DataPointSeries,
    Dimension,
    EnrichedResult,
    MetricDescriptor,
    MetricQuery,
    Statistic,
    ViolatingMetric,
)

__all__ = [
    "AlarmDescriptor",
    "AlarmState",
    "ComparisonOperator",
    "ConfigError",
    "DataPointSeries",
    "Dimension",
    "DispatchTarget",
    "EnrichedResult",
    "EnricherError",
    "InvalidEventError",
    "MetricDescriptor",
    "MetricQuery",
    "Settings",
    "Statistic",
    "ViolatingMetric",
    "get_settings",
    "load_settings",
    "reset_settings",
    "setup_logging",
]
