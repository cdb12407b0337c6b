"""Base exception hierarchy shared across the enricher."""

from __future__ import annotations


class EnricherError(Exception):
    """Base exception for all alarm enricher errors."""


class ConfigError(EnricherError):
    """Configuration is missing or invalid for the requested component."""


class InvalidEventError(EnricherError):
    """The triggering event could not be parsed."""
