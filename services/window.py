"""Rolling window of raw vehicle counts, deduplicated by record id."""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from models.records import VehicleCount
from services.clock import window_cutoff


def merge_records(
    existing: Iterable[VehicleCount],
    incoming: Iterable[VehicleCount],
) -> List[VehicleCount]:
    """Union of both inputs keyed by ``record_id``; the first copy seen wins."""
    merged: Dict[str, VehicleCount] = {}
    for source in (existing, incoming):
        for record in source:
            merged.setdefault(record.record_id, record)
    return list(merged.values())


def prune_records(records: Iterable[VehicleCount], cutoff: datetime) -> List[VehicleCount]:
    """Drop records older than ``cutoff`` and sort the rest by timestamp."""
    kept = [record for record in records if record.timestamp >= cutoff]
    return sorted(kept, key=lambda record: record.timestamp)


class RollingWindow:
    """Bounded, id-unique set of recent observations, iterated oldest first."""

    def __init__(self, tz: tzinfo, records: Iterable[VehicleCount] = ()) -> None:
        self.tz = tz
        self._records: Tuple[VehicleCount, ...] = tuple(merge_records(records, ()))

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[VehicleCount]:
        return iter(self._records)

    def absorb(
        self,
        incoming: Iterable[VehicleCount],
        now: Optional[datetime] = None,
    ) -> Tuple[VehicleCount, ...]:
        """Merge freshly fetched records, then prune to the retention window."""
        merged = merge_records(self._records, incoming)
        self._records = tuple(prune_records(merged, window_cutoff(self.tz, now)))
        return self._records
