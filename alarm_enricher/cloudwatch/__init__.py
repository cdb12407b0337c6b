"""CloudWatch client — alarm lookup, metric catalog and metric data queries."""

from alarm_enricher.cloudwatch.client import CloudWatchClient
from alarm_enricher.cloudwatch.exceptions import (
    CloudWatchConnectionError,
    CloudWatchError,
    CloudWatchRequestError,
    CloudWatchThrottlingError,
)
from alarm_enricher.cloudwatch.rate_limiter import RateLimiter, TokenBucket

__all__ = [
    "CloudWatchClient",
    "CloudWatchConnectionError",
    "CloudWatchError",
    "CloudWatchRequestError",
    "CloudWatchThrottlingError",
    "RateLimiter",
    "TokenBucket",
]
