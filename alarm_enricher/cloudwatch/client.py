"""Async wrapper around the synchronous boto3 CloudWatch client."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable, Sequence
from datetime import datetime
from types import TracebackType
from typing import Any

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from alarm_enricher.cloudwatch.exceptions import (
    CloudWatchConnectionError,
    CloudWatchRequestError,
    CloudWatchThrottlingError,
)
from alarm_enricher.cloudwatch.rate_limiter import RateLimiter
from alarm_enricher.core.config import get_settings
from alarm_enricher.core.types import (
    AlarmDescriptor,
    AlarmState,
    ComparisonOperator,
    DataPointSeries,
    Dimension,
    MetricDescriptor,
    MetricQuery,
)

logger = structlog.stdlib.get_logger()

_THROTTLING_CODES = frozenset({
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
    "TooManyRequestsException",
})

# ListMetrics only reports metrics with data in the last three hours when set.
_RECENTLY_ACTIVE = "PT3H"


def _parse_dimensions(raw: Sequence[dict[str, Any]] | None) -> tuple[Dimension, ...]:
    return tuple(
        Dimension(name=d.get("Name", ""), value=d.get("Value", ""))
        for d in raw or []
    )


def _dimension_params(dimensions: Sequence[Dimension]) -> list[dict[str, str]]:
    return [{"Name": d.name, "Value": d.value} for d in dimensions]


def _parse_alarm(raw: dict[str, Any]) -> AlarmDescriptor:
    """Convert a DescribeAlarms ``MetricAlarms`` entry to an AlarmDescriptor.

    Metric-math alarms carry ``Metrics`` instead of a namespace/metric name,
    and percentile alarms use ``ExtendedStatistic`` instead of ``Statistic``.
    """
    return AlarmDescriptor(
        name=raw.get("AlarmName") or "",
        arn=raw.get("AlarmArn") or "",
        namespace=raw.get("Namespace") or "",
        metric_name=raw.get("MetricName") or "",
        dimensions=_parse_dimensions(raw.get("Dimensions")),
        statistic=raw.get("Statistic") or raw.get("ExtendedStatistic") or "Average",
        period=int(raw.get("Period") or 60),
        evaluation_periods=max(1, int(raw.get("EvaluationPeriods") or 1)),
        threshold=float(raw.get("Threshold") or 0.0),
        comparison_operator=ComparisonOperator(raw.get("ComparisonOperator") or "Other"),
        state=AlarmState(raw.get("StateValue") or "OTHER"),
        state_reason=raw.get("StateReason") or "",
        state_updated_at=raw.get("StateUpdatedTimestamp"),
    )


def _parse_metric(raw: dict[str, Any]) -> MetricDescriptor:
    return MetricDescriptor(
        namespace=raw.get("Namespace") or "",
        metric_name=raw.get("MetricName") or "",
        dimensions=_parse_dimensions(raw.get("Dimensions")),
    )


def _query_params(query: MetricQuery) -> dict[str, Any]:
    return {
        "Id": query.id,
        "MetricStat": {
            "Metric": {
                "Namespace": query.metric.namespace,
                "MetricName": query.metric.metric_name,
                "Dimensions": _dimension_params(query.metric.dimensions),
            },
            "Period": query.period,
            "Stat": query.statistic,
        },
        "ReturnData": query.return_data,
    }


class CloudWatchClient:
    """Async CloudWatch access implementing the alarm, catalog and time-series sources.

    Every call is rate limited per operation and executed in a worker
    thread, so cancelling the awaiting task returns control immediately.

    Usage::

        async with CloudWatchClient(region="eu-west-1") as cw:
            alarm = await cw.fetch_alarm("HighCPU")
    """

    def __init__(
        self,
        region: str | None = None,
        endpoint_url: str | None = None,
        rate_limiter: RateLimiter | None = None,
        recently_active_only: bool | None = None,
    ) -> None:
        settings = get_settings()

        self._region = region or settings.aws.region or None
        self._endpoint_url = endpoint_url or settings.aws.endpoint_url
        self._rate_limiter = rate_limiter or RateLimiter.from_config(settings.rate_limit)
        self._recently_active_only = (
            settings.enrichment.recently_active_only
            if recently_active_only is None
            else recently_active_only
        )
        self._sdk: Any | None = None

    async def connect(self) -> None:
        """Create the underlying boto3 client."""
        try:
            self._sdk = await asyncio.to_thread(
                boto3.client,
                "cloudwatch",
                region_name=self._region,
                endpoint_url=self._endpoint_url,
            )
        except (BotoCoreError, ValueError) as exc:
            raise CloudWatchConnectionError(
                f"Failed to initialize CloudWatch client: {exc}"
            ) from exc
        logger.info("cloudwatch_client_connected", region=self._region)

    async def close(self) -> None:
        if self._sdk is not None:
            await asyncio.to_thread(self._sdk.close)
            self._sdk = None

    async def __aenter__(self) -> CloudWatchClient:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def sdk(self) -> Any:
        """Access the underlying boto3 client, raising if not connected."""
        if self._sdk is None:
            raise CloudWatchConnectionError("Client not connected. Call connect() first.")
        return self._sdk

    async def _call(self, operation: str, fn: Callable[..., Any], **params: Any) -> Any:
        await self._rate_limiter.acquire(operation)
        try:
            return await asyncio.to_thread(fn, **params)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            if code in _THROTTLING_CODES:
                raise CloudWatchThrottlingError(f"{operation} throttled: {exc}") from exc
            raise CloudWatchRequestError(f"{operation} failed: {exc}") from exc
        except BotoCoreError as exc:
            raise CloudWatchRequestError(f"{operation} failed: {exc}") from exc

    # ── Alarms ───────────────────────────────────────────────────

    async def fetch_alarm(self, name: str) -> AlarmDescriptor | None:
        """Describe a single metric alarm. Returns None if it does not exist."""
        raw = await self._call(
            "DescribeAlarms",
            self.sdk.describe_alarms,
            AlarmNames=[name],
            AlarmTypes=["MetricAlarm"],
            MaxRecords=1,
        )
        alarms = raw.get("MetricAlarms") or []
        if not alarms:
            return None
        return _parse_alarm(alarms[0])

    # ── Metric catalog ───────────────────────────────────────────

    async def list_metrics(
        self,
        namespace: str,
        metric_name: str,
        dimensions: Sequence[Dimension] = (),
    ) -> AsyncIterator[list[MetricDescriptor]]:
        """Yield pages of metrics matching the namespace, name and dimension filter."""
        params: dict[str, Any] = {
            "Namespace": namespace,
            "MetricName": metric_name,
            "Dimensions": _dimension_params(dimensions),
        }
        if self._recently_active_only:
            params["RecentlyActive"] = _RECENTLY_ACTIVE

        next_token = ""
        while True:
            if next_token:
                params["NextToken"] = next_token
            raw = await self._call("ListMetrics", self.sdk.list_metrics, **params)
            yield [_parse_metric(m) for m in raw.get("Metrics") or []]
            next_token = raw.get("NextToken") or ""
            if not next_token:
                break

    # ── Metric data ──────────────────────────────────────────────

    async def query_recent_data(
        self,
        queries: Sequence[MetricQuery],
        start: datetime,
        end: datetime,
    ) -> list[DataPointSeries]:
        """Fetch data for ``queries`` between ``start`` and ``end``.

        Results are requested oldest-first and merged across ``NextToken``
        pages. The returned list holds one series per query in query order,
        regardless of the order CloudWatch reports them in.
        """
        if not queries:
            return []

        merged: dict[str, DataPointSeries] = {q.id: DataPointSeries(id=q.id) for q in queries}
        params: dict[str, Any] = {
            "MetricDataQueries": [_query_params(q) for q in queries],
            "StartTime": start,
            "EndTime": end,
            "ScanBy": "TimestampAscending",
        }

        next_token = ""
        while True:
            if next_token:
                params["NextToken"] = next_token
            raw = await self._call("GetMetricData", self.sdk.get_metric_data, **params)
            for result in raw.get("MetricDataResults") or []:
                series = merged.get(result.get("Id", ""))
                if series is None:
                    continue
                series.timestamps.extend(result.get("Timestamps") or [])
                series.values.extend(float(v) for v in result.get("Values") or [])
            for message in raw.get("Messages") or []:
                logger.warning(
                    "get_metric_data_message",
                    code=message.get("Code"),
                    value=message.get("Value"),
                )
            next_token = raw.get("NextToken") or ""
            if not next_token:
                break

        return [merged[q.id] for q in queries]
