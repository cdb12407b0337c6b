"""Tests for the CloudWatch client wrapper.

Tests mock the boto3 client to verify:
- Conversions between boto3 responses and domain types
- ListMetrics / GetMetricData pagination
- Result ordering by query id
- Error mapping to the client exception hierarchy
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from alarm_enricher.cloudwatch.client import CloudWatchClient, _parse_alarm, _parse_metric
from alarm_enricher.cloudwatch.exceptions import (
    CloudWatchConnectionError,
    CloudWatchRequestError,
    CloudWatchThrottlingError,
)
from alarm_enricher.cloudwatch.rate_limiter import RateLimiter
from alarm_enricher.core.config import reset_settings
from alarm_enricher.core.types import (
    AlarmState,
    ComparisonOperator,
    Dimension,
    MetricDescriptor,
    MetricQuery,
)

UTC = timezone.utc
END = datetime(2024, 3, 15, 7, 30, tzinfo=UTC)
START = END - timedelta(minutes=5)


@pytest.fixture(autouse=True)
def _clean_settings() -> None:
    reset_settings()


def _client_error(code: str, op: str = "GetMetricData") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "nope"}}, op)


def _raw_alarm(**kw: object) -> dict[str, object]:
    raw: dict[str, object] = {
        "AlarmName": "HighCPU",
        "AlarmArn": "arn:aws:cloudwatch:us-east-1:123456789012:alarm:HighCPU",
        "StateValue": "ALARM",
        "StateReason": "Threshold Crossed: 1 datapoint [60.0] was greater than 50.0",
        "StateUpdatedTimestamp": END,
        "MetricName": "CPUUtilization",
        "Namespace": "AWS/EC2",
        "Statistic": "Average",
        "Dimensions": [{"Name": "AutoScalingGroupName", "Value": "web"}],
        "Period": 300,
        "EvaluationPeriods": 2,
        "Threshold": 50.0,
        "ComparisonOperator": "GreaterThanThreshold",
    }
    raw.update(kw)
    return raw


def _query(i: int) -> MetricQuery:
    return MetricQuery(
        id=f"m{i}",
        metric=MetricDescriptor(
            namespace="AWS/EC2",
            metric_name="CPUUtilization",
            dimensions=(Dimension(name="InstanceId", value=f"i-{i}"),),
        ),
        period=60,
        statistic="Average",
    )


@pytest.fixture()
def mock_sdk() -> MagicMock:
    sdk = MagicMock()
    sdk.describe_alarms.return_value = {"MetricAlarms": [_raw_alarm()]}
    sdk.list_metrics.return_value = {"Metrics": []}
    sdk.get_metric_data.return_value = {"MetricDataResults": []}
    return sdk


@pytest.fixture()
def fast_limiter() -> RateLimiter:
    """Rate limiter that doesn't actually throttle in tests."""
    return RateLimiter({"DescribeAlarms": 10000, "ListMetrics": 10000, "GetMetricData": 10000})


@pytest.fixture()
async def client(mock_sdk: MagicMock, fast_limiter: RateLimiter) -> CloudWatchClient:
    with patch("alarm_enricher.cloudwatch.client.boto3.client", return_value=mock_sdk) as factory:
        c = CloudWatchClient(region="us-east-1", rate_limiter=fast_limiter)
        await c.connect()
        factory.assert_called_once_with("cloudwatch", region_name="us-east-1", endpoint_url=None)
        yield c  # type: ignore[misc]
        await c.close()


# ── Parsing ─────────────────────────────────────────────────────


class TestParseAlarm:
    def test_parses_metric_alarm(self) -> None:
        alarm = _parse_alarm(_raw_alarm())
        assert alarm.name == "HighCPU"
        assert alarm.state == AlarmState.ALARM
        assert alarm.dimensions == (Dimension(name="AutoScalingGroupName", value="web"),)
        assert alarm.period == 300
        assert alarm.evaluation_periods == 2
        assert alarm.comparison_operator == ComparisonOperator.GREATER_THAN
        assert alarm.state_updated_at == END

    def test_extended_statistic(self) -> None:
        raw = _raw_alarm(ExtendedStatistic="p99")
        del raw["Statistic"]
        assert _parse_alarm(raw).statistic == "p99"

    def test_anomaly_operator(self) -> None:
        alarm = _parse_alarm(_raw_alarm(ComparisonOperator="LessThanLowerOrGreaterThanUpperThreshold"))
        assert alarm.comparison_operator == ComparisonOperator.OUTSIDE_BAND

    def test_metric_math_alarm_has_no_single_metric(self) -> None:
        raw = _raw_alarm(Metrics=[{"Id": "e1", "Expression": "m1+m2"}])
        for key in ("MetricName", "Namespace", "Statistic", "Dimensions"):
            del raw[key]
        alarm = _parse_alarm(raw)
        assert alarm.has_single_metric is False
        assert alarm.dimensions == ()

    def test_unknown_state(self) -> None:
        assert _parse_alarm(_raw_alarm(StateValue="WEIRD")).state == AlarmState.OTHER


class TestParseMetric:
    def test_parses_dimensions(self) -> None:
        metric = _parse_metric(
            {
                "Namespace": "AWS/EC2",
                "MetricName": "CPUUtilization",
                "Dimensions": [{"Name": "InstanceId", "Value": "i-1"}],
            }
        )
        assert metric.dimension_map() == {"InstanceId": "i-1"}

    def test_missing_dimensions(self) -> None:
        metric = _parse_metric({"Namespace": "AWS/Lambda", "MetricName": "Throttles"})
        assert metric.dimension_count == 0


# ── Alarms ──────────────────────────────────────────────────────


class TestFetchAlarm:
    async def test_describes_single_metric_alarm(
        self, client: CloudWatchClient, mock_sdk: MagicMock
    ) -> None:
        alarm = await client.fetch_alarm("HighCPU")
        assert alarm is not None
        assert alarm.name == "HighCPU"
        mock_sdk.describe_alarms.assert_called_once_with(
            AlarmNames=["HighCPU"], AlarmTypes=["MetricAlarm"], MaxRecords=1
        )

    async def test_missing_alarm_returns_none(
        self, client: CloudWatchClient, mock_sdk: MagicMock
    ) -> None:
        mock_sdk.describe_alarms.return_value = {"MetricAlarms": [], "CompositeAlarms": []}
        assert await client.fetch_alarm("nope") is None


# ── Metric catalog ──────────────────────────────────────────────


class TestListMetrics:
    async def test_follows_next_token(self, client: CloudWatchClient, mock_sdk: MagicMock) -> None:
        mock_sdk.list_metrics.side_effect = [
            {
                "Metrics": [{"Namespace": "AWS/EC2", "MetricName": "CPUUtilization",
                             "Dimensions": [{"Name": "InstanceId", "Value": "i-1"}]}],
                "NextToken": "page-2",
            },
            {
                "Metrics": [{"Namespace": "AWS/EC2", "MetricName": "CPUUtilization",
                             "Dimensions": [{"Name": "InstanceId", "Value": "i-2"}]}],
            },
        ]
        pages = [
            page
            async for page in client.list_metrics(
                "AWS/EC2", "CPUUtilization", (Dimension(name="InstanceType", value="t3.micro"),)
            )
        ]

        assert [[m.dimension_map()["InstanceId"] for m in p] for p in pages] == [["i-1"], ["i-2"]]
        first, second = mock_sdk.list_metrics.call_args_list
        assert first.kwargs["Dimensions"] == [{"Name": "InstanceType", "Value": "t3.micro"}]
        assert "NextToken" not in first.kwargs
        assert second.kwargs["NextToken"] == "page-2"
        assert "RecentlyActive" not in first.kwargs

    async def test_recently_active_filter(self, mock_sdk: MagicMock, fast_limiter: RateLimiter) -> None:
        with patch("alarm_enricher.cloudwatch.client.boto3.client", return_value=mock_sdk):
            c = CloudWatchClient(region="us-east-1", rate_limiter=fast_limiter, recently_active_only=True)
            await c.connect()
        _ = [page async for page in c.list_metrics("AWS/EC2", "CPUUtilization")]
        assert mock_sdk.list_metrics.call_args.kwargs["RecentlyActive"] == "PT3H"


# ── Metric data ─────────────────────────────────────────────────


class TestQueryRecentData:
    async def test_request_shape(self, client: CloudWatchClient, mock_sdk: MagicMock) -> None:
        await client.query_recent_data([_query(0)], START, END)
        kwargs = mock_sdk.get_metric_data.call_args.kwargs
        assert kwargs["StartTime"] == START
        assert kwargs["EndTime"] == END
        assert kwargs["ScanBy"] == "TimestampAscending"
        (q,) = kwargs["MetricDataQueries"]
        assert q == {
            "Id": "m0",
            "MetricStat": {
                "Metric": {
                    "Namespace": "AWS/EC2",
                    "MetricName": "CPUUtilization",
                    "Dimensions": [{"Name": "InstanceId", "Value": "i-0"}],
                },
                "Period": 60,
                "Stat": "Average",
            },
            "ReturnData": True,
        }

    async def test_results_returned_in_query_order(
        self, client: CloudWatchClient, mock_sdk: MagicMock
    ) -> None:
        mock_sdk.get_metric_data.return_value = {
            "MetricDataResults": [
                {"Id": "m1", "Timestamps": [END], "Values": [2.0]},
                {"Id": "m0", "Timestamps": [END], "Values": [1.0]},
            ]
        }
        series = await client.query_recent_data([_query(0), _query(1), _query(2)], START, END)
        assert [s.id for s in series] == ["m0", "m1", "m2"]
        assert [s.values for s in series] == [[1.0], [2.0], []]

    async def test_pages_merged_per_id(self, client: CloudWatchClient, mock_sdk: MagicMock) -> None:
        t1, t2 = END - timedelta(minutes=2), END - timedelta(minutes=1)
        mock_sdk.get_metric_data.side_effect = [
            {"MetricDataResults": [{"Id": "m0", "Timestamps": [t1], "Values": [10.0]}],
             "NextToken": "more"},
            {"MetricDataResults": [{"Id": "m0", "Timestamps": [t2], "Values": [20.0]}]},
        ]
        (series,) = await client.query_recent_data([_query(0)], START, END)
        assert series.values == [10.0, 20.0]
        assert series.latest == (t2, 20.0)
        assert mock_sdk.get_metric_data.call_args_list[1].kwargs["NextToken"] == "more"

    async def test_empty_queries_make_no_call(
        self, client: CloudWatchClient, mock_sdk: MagicMock
    ) -> None:
        assert await client.query_recent_data([], START, END) == []
        mock_sdk.get_metric_data.assert_not_called()


# ── Errors ──────────────────────────────────────────────────────


class TestErrors:
    async def test_throttling_mapped(self, client: CloudWatchClient, mock_sdk: MagicMock) -> None:
        mock_sdk.get_metric_data.side_effect = _client_error("Throttling")
        with pytest.raises(CloudWatchThrottlingError):
            await client.query_recent_data([_query(0)], START, END)

    async def test_client_error_mapped(self, client: CloudWatchClient, mock_sdk: MagicMock) -> None:
        mock_sdk.describe_alarms.side_effect = _client_error("AccessDenied", "DescribeAlarms")
        with pytest.raises(CloudWatchRequestError):
            await client.fetch_alarm("HighCPU")

    async def test_botocore_error_mapped(self, client: CloudWatchClient, mock_sdk: MagicMock) -> None:
        mock_sdk.list_metrics.side_effect = EndpointConnectionError(endpoint_url="https://x")
        with pytest.raises(CloudWatchRequestError):
            _ = [p async for p in client.list_metrics("AWS/EC2", "CPUUtilization")]

    async def test_not_connected(self) -> None:
        c = CloudWatchClient(region="us-east-1")
        with pytest.raises(CloudWatchConnectionError):
            await c.fetch_alarm("HighCPU")
