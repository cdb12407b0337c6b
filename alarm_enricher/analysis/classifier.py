"""Threshold comparison for a single data point."""

from __future__ import annotations

from alarm_enricher.core.types import AlarmDescriptor, ComparisonOperator


def is_violating(value: float, threshold: float, operator: ComparisonOperator) -> bool:
    """Return True when ``value`` breaches ``threshold`` under ``operator``.

    Anomaly-band and unrecognised operators are not modelled and always
    report a violation: the alarm already fired, so every candidate is
    surfaced rather than silently dropped.
    """
    if operator == ComparisonOperator.GREATER_THAN:
        return value > threshold
    if operator == ComparisonOperator.GREATER_THAN_OR_EQUAL:
        return value >= threshold
    if operator == ComparisonOperator.LESS_THAN:
        return value < threshold
    if operator == ComparisonOperator.LESS_THAN_OR_EQUAL:
        return value <= threshold
    return True


def violates_alarm(value: float, alarm: AlarmDescriptor) -> bool:
    return is_violating(value, alarm.threshold, alarm.comparison_operator)
