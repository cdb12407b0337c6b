"""Exception hierarchy for notification dispatch."""

from __future__ import annotations

from alarm_enricher.core.exceptions import EnricherError


class DispatchError(EnricherError):
    """Formatting or delivering an enriched alarm failed."""
