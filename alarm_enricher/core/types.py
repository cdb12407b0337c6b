"""Domain types for alarm enrichment — alarms, metrics, queries and results."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AlarmState(StrEnum):
    """Alarm state as reported by CloudWatch."""

    OK = "OK"
    ALARM = "ALARM"
    INSUFFICIENT_DATA = "INSUFFICIENT_DATA"
    OTHER = "OTHER"

    @classmethod
    def _missing_(cls, value: object) -> AlarmState:
        return cls.OTHER


class ComparisonOperator(StrEnum):
    """Alarm comparison operator."""

    GREATER_THAN = "GreaterThanThreshold"
    GREATER_THAN_OR_EQUAL = "GreaterThanOrEqualToThreshold"
    LESS_THAN = "LessThanThreshold"
    LESS_THAN_OR_EQUAL = "LessThanOrEqualToThreshold"
    # Anomaly-detection band operators
    OUTSIDE_BAND = "LessThanLowerOrGreaterThanUpperThreshold"
    BELOW_BAND = "LessThanLowerThreshold"
    ABOVE_BAND = "GreaterThanUpperThreshold"
    OTHER = "Other"

    @classmethod
    def _missing_(cls, value: object) -> ComparisonOperator:
        return cls.OTHER


class Statistic(StrEnum):
    """Standard CloudWatch statistics. Extended statistics (p99, tm90) are plain strings."""

    AVERAGE = "Average"
    SUM = "Sum"
    MINIMUM = "Minimum"
    MAXIMUM = "Maximum"
    SAMPLE_COUNT = "SampleCount"


class Dimension(BaseModel):
    """A single name/value dimension pair."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str


class AlarmDescriptor(BaseModel):
    """Snapshot of a metric alarm definition and its current state."""

    model_config = ConfigDict(frozen=True)

    name: str
    arn: str = ""
    namespace: str = ""
    metric_name: str = ""
    dimensions: tuple[Dimension, ...] = ()
    statistic: str = Statistic.AVERAGE.value
    period: int = 60
    evaluation_periods: int = Field(default=1, ge=1)
    threshold: float = 0.0
    comparison_operator: ComparisonOperator = ComparisonOperator.GREATER_THAN
    state: AlarmState = AlarmState.OK
    state_reason: str = ""
    state_updated_at: datetime | None = None

    @property
    def in_alarm(self) -> bool:
        return self.state == AlarmState.ALARM

    @property
    def has_single_metric(self) -> bool:
        """False for metric-math alarms, which carry no namespace/metric name."""
        return bool(self.namespace and self.metric_name)


class MetricDescriptor(BaseModel):
    """A metric known to the catalog: namespace, name and dimension set."""

    model_config = ConfigDict(frozen=True)

    namespace: str
    metric_name: str
    dimensions: tuple[Dimension, ...] = ()

    @property
    def dimension_count(self) -> int:
        return len(self.dimensions)

    def dimension_map(self) -> dict[str, str]:
        return {d.name: d.value for d in self.dimensions}


class MetricQuery(BaseModel):
    """One entry of a batched data query."""

    id: str
    metric: MetricDescriptor
    period: int
    statistic: str
    return_data: bool = True


class DataPointSeries(BaseModel):
    """Data points for one query, ordered ascending by time."""

    id: str
    timestamps: list[datetime] = Field(default_factory=list)
    values: list[float] = Field(default_factory=list)

    @property
    def latest(self) -> tuple[datetime, float] | None:
        """Most recent (timestamp, value) pair, or None when there is no data."""
        n = min(len(self.timestamps), len(self.values))
        if n == 0:
            return None
        return self.timestamps[n - 1], self.values[n - 1]


class ViolatingMetric(BaseModel):
    """A specific metric currently violating the alarm threshold."""

    value: float
    dimensions: dict[str, str] = Field(default_factory=dict)
    timestamp: datetime


class EnrichedResult(BaseModel):
    """An alarm enriched with the metrics violating its threshold."""

    alarm: AlarmDescriptor
    timestamp: datetime = Field(default_factory=_utcnow)
    violating_metrics: list[ViolatingMetric] = Field(default_factory=list)
    metadata: dict[str, str] = Field(default_factory=dict)
    account_id: str = ""

    @property
    def status(self) -> str:
        return self.metadata.get("status", "")
