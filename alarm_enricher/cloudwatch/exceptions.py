"""Exception hierarchy for the CloudWatch client."""

from __future__ import annotations

from alarm_enricher.core.exceptions import EnricherError


class CloudWatchError(EnricherError):
    """Base exception for all CloudWatch client errors."""


class CloudWatchConnectionError(CloudWatchError):
    """The boto3 client could not be created or is not connected."""


class CloudWatchThrottlingError(CloudWatchError):
    """CloudWatch rejected the request for exceeding its rate quota."""


class CloudWatchRequestError(CloudWatchError):
    """CloudWatch returned an error or the request could not be sent."""
