"""Exception hierarchy for the fetch and aggregation pipeline."""

from __future__ import annotations

from datetime import date


class TrafficPipelineError(Exception):
    """Base class for failures that abort a refresh cycle."""


class StoreUnavailableError(TrafficPipelineError):
    """The record store could not answer a query. The next tick retries."""


class FetchTimeoutError(StoreUnavailableError):
    """The record store query did not finish within the configured timeout."""

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"Record store query timed out after {timeout_seconds:g}s.")
        self.timeout_seconds = timeout_seconds


class IntegrityViolation(TrafficPipelineError):
    """Aggregated data is inconsistent; indicates a quantization or config bug."""


class IncompleteDayError(IntegrityViolation):
    """A finished day does not hold exactly one count per 15-minute slot."""

    def __init__(self, intersection: str, day: date, slot_count: int, expected: int) -> None:
        super().__init__(
            f"Intersection {intersection!r} has {slot_count} slots on {day.isoformat()}, "
            f"expected {expected}."
        )
        self.intersection = intersection
        self.day = day
        self.slot_count = slot_count
        self.expected = expected


class UnknownIntersectionError(IntegrityViolation):
    """A record names an intersection missing from the camera catalog."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Intersection {name!r} is not in the camera catalog.")
        self.name = name


class CatalogLoadError(TrafficPipelineError):
    """The camera catalog file is missing or malformed."""
