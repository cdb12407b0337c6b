"""Exception hierarchy for the violation analysis pipeline."""

from __future__ import annotations

from alarm_enricher.core.exceptions import EnricherError


class EnrichmentError(EnricherError):
    """Base exception for enrichment failures; ``stage`` names the failing step."""

    stage = "enrichment"

    def __init__(self, alarm_name: str, message: str) -> None:
        super().__init__(f"{self.stage}: alarm {alarm_name!r}: {message}")
        self.alarm_name = alarm_name


class AlarmNotFoundError(EnrichmentError):
    """The alarm source has no metric alarm with the given name."""

    stage = "fetch"


class AlarmLookupError(EnrichmentError):
    """The alarm source failed while describing the alarm."""

    stage = "fetch"


class DiscoveryError(EnrichmentError):
    """Listing candidate metrics failed."""

    stage = "discovery"


class BatchEvaluationError(EnrichmentError):
    """A batched data query failed; no partial result is returned."""

    stage = "evaluation"

    def __init__(self, alarm_name: str, message: str, batch_index: int) -> None:
        super().__init__(alarm_name, f"batch {batch_index}: {message}")
        self.batch_index = batch_index
