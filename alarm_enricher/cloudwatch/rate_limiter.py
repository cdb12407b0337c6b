"""Async token-bucket rate limiting for CloudWatch API operations."""

from __future__ import annotations

import asyncio
import time

from alarm_enricher.core.config import RateLimitConfig


class TokenBucket:
    """A simple token bucket that refills at a fixed rate."""

    def __init__(self, rate: float, capacity: float) -> None:
        self.rate = rate
        self.capacity = capacity
        self.tokens = capacity
        self._last_refill = time.monotonic()

    def _refill(self) -> None:
        now = time.monotonic()
        elapsed = now - self._last_refill
        self.tokens = min(self.capacity, self.tokens + elapsed * self.rate)
        self._last_refill = now

    def try_acquire(self) -> bool:
        """Try to consume one token. Returns True if successful."""
        self._refill()
        if self.tokens >= 1.0:
            self.tokens -= 1.0
            return True
        return False

    def time_until_available(self) -> float:
        """Seconds until at least one token is available."""
        self._refill()
        if self.tokens >= 1.0:
            return 0.0
        return (1.0 - self.tokens) / self.rate


class RateLimiter:
    """One token bucket per CloudWatch operation.

    Each bucket allows a one-second burst at its rate. ``acquire(op)``
    blocks (async) until the bucket for ``op`` has a token. Operations
    without a configured rate are not limited.
    """

    def __init__(self, rates: dict[str, float] | None = None) -> None:
        self._buckets: dict[str, TokenBucket] = {
            op: TokenBucket(rate=float(rate), capacity=float(max(rate, 1)))
            for op, rate in (rates or {}).items()
            if rate > 0
        }

    @classmethod
    def from_config(cls, config: RateLimitConfig) -> RateLimiter:
        return cls(
            {
                "DescribeAlarms": config.describe_alarms_per_sec,
                "ListMetrics": config.list_metrics_per_sec,
                "GetMetricData": config.get_metric_data_per_sec,
            }
        )

    async def acquire(self, operation: str) -> None:
        """Wait until ``operation`` may be called, then consume one token."""
        bucket = self._buckets.get(operation)
        if bucket is None:
            return
        while not bucket.try_acquire():
            await asyncio.sleep(max(bucket.time_until_available(), 0.001))
