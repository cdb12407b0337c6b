"""Message formatters — render an EnrichedResult as text or JSON."""

from __future__ import annotations

import abc
import json
from datetime import datetime, timezone
from typing import Any

from alarm_enricher.core.types import (
    AlarmDescriptor,
    ComparisonOperator,
    EnrichedResult,
    ViolatingMetric,
)

_COMPARISON_SYMBOLS: dict[ComparisonOperator, str] = {
    ComparisonOperator.GREATER_THAN: ">",
    ComparisonOperator.GREATER_THAN_OR_EQUAL: ">=",
    ComparisonOperator.LESS_THAN: "<",
    ComparisonOperator.LESS_THAN_OR_EQUAL: "<=",
}

_STATUS_LINES: dict[str, str] = {
    "resolved": "Alarm is no longer in ALARM state; no violation analysis performed.",
    "unsupported": "Alarm is not based on a single metric; no violation analysis performed.",
}


def comparison_symbol(operator: ComparisonOperator) -> str:
    """Symbol for the four ordering operators, the operator name otherwise."""
    return _COMPARISON_SYMBOLS.get(operator, operator.value)


def _rfc3339(ts: datetime) -> str:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def format_dimensions(dimensions: dict[str, str]) -> str:
    """``name=value`` pairs sorted by name."""
    if not dimensions:
        return "(no dimensions)"
    return ", ".join(f"{k}={v}" for k, v in sorted(dimensions.items()))


class MessageFormatter(abc.ABC):
    """Base class for rendering enriched results."""

    @abc.abstractmethod
    def format(self, result: EnrichedResult) -> str:
        """Render the result as a message body."""


class TextFormatter(MessageFormatter):
    """Human-readable message for email / chat destinations."""

    def format(self, result: EnrichedResult) -> str:
        alarm = result.alarm
        lines = [
            f"🚨 CloudWatch Alarm: {alarm.name}",
            f"State: {alarm.state.value}",
        ]
        if result.account_id:
            lines.append(f"AccountID: {result.account_id}")
        lines.append(f"Reason: {alarm.state_reason}")
        lines.append("")

        status_line = _STATUS_LINES.get(result.status)
        if status_line:
            lines.append(status_line)
        elif not result.violating_metrics:
            lines.append("No specific services currently violating the threshold.")
        else:
            lines.append(
                f"Metrics currently violating "
                f"({comparison_symbol(alarm.comparison_operator)} {alarm.threshold:.1f}) threshold:"
            )
            for i, vm in enumerate(result.violating_metrics, start=1):
                lines.append(f"{i}. {format_dimensions(vm.dimensions)}, Value: {vm.value:.2f}")

        lines.append("")
        lines.append(f"Timestamp: {_rfc3339(result.timestamp)}")
        return "\n".join(lines)


def _alarm_payload(alarm: AlarmDescriptor) -> dict[str, Any]:
    return {
        "alarmName": alarm.name,
        "alarmArn": alarm.arn,
        "namespace": alarm.namespace,
        "metricName": alarm.metric_name,
        "dimensions": [{"name": d.name, "value": d.value} for d in alarm.dimensions],
        "statistic": alarm.statistic,
        "period": alarm.period,
        "evaluationPeriods": alarm.evaluation_periods,
        "threshold": alarm.threshold,
        "comparisonOperator": alarm.comparison_operator.value,
        "stateValue": alarm.state.value,
        "stateReason": alarm.state_reason,
        "stateUpdatedTimestamp": (
            _rfc3339(alarm.state_updated_at) if alarm.state_updated_at else None
        ),
    }


def _violating_payload(vm: ViolatingMetric) -> dict[str, Any]:
    return {
        "value": vm.value,
        "dimensions": dict(vm.dimensions),
        "timestamp": _rfc3339(vm.timestamp),
    }


class JSONFormatter(MessageFormatter):
    """Machine-readable payload for event buses."""

    def to_payload(self, result: EnrichedResult) -> dict[str, Any]:
        return {
            "accountID": result.account_id,
            "timestamp": _rfc3339(result.timestamp),
            "alarm": _alarm_payload(result.alarm),
            "violatingMetrics": [_violating_payload(vm) for vm in result.violating_metrics],
            "metadata": dict(result.metadata),
        }

    def format(self, result: EnrichedResult) -> str:
        return json.dumps(self.to_payload(result), ensure_ascii=False)
