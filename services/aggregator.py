"""Aggregation of raw vehicle counts into per-intersection daily series."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple

from models.records import QuantizedCount, VehicleCount
from services.clock import (
    format_day_key,
    local_day,
    round_to_nearest_quarter_hour,
    serving_cutoff,
    slots_in_day,
)
from services.errors import IncompleteDayError

DailyCounts = Mapping[date, Tuple[int, ...]]


class LocationLookup(Protocol):
    def location_for(self, name: str) -> Any: ...


@dataclass(frozen=True)
class IntersectionAggregate:
    location: Any
    data: DailyCounts


@dataclass(frozen=True)
class Snapshot:
    """Immutable aggregate served to readers, intersections in name order."""

    intersections: Mapping[str, IntersectionAggregate]

    def __len__(self) -> int:
        return len(self.intersections)

    def to_payload(self) -> Dict[str, Dict[str, Any]]:
        """Plain JSON-ready structure with ``YYYY-M-D`` day keys."""
        return {
            name: {
                "location": aggregate.location,
                "data": {
                    format_day_key(day): list(counts) for day, counts in aggregate.data.items()
                },
            }
            for name, aggregate in self.intersections.items()
        }


EMPTY_SNAPSHOT = Snapshot(intersections=MappingProxyType({}))


def quantize(records: Iterable[VehicleCount]) -> List[QuantizedCount]:
    return [
        QuantizedCount(
            intersection=record.intersection,
            timestamp=round_to_nearest_quarter_hour(record.timestamp),
            vehicle_count=record.vehicle_count,
        )
        for record in records
    ]


def group_by_intersection(points: Iterable[QuantizedCount]) -> Dict[str, List[QuantizedCount]]:
    """Partition points by intersection, keys in lexicographic order."""
    groups: Dict[str, List[QuantizedCount]] = {}
    for point in points:
        groups.setdefault(point.intersection, []).append(point)
    return {name: groups[name] for name in sorted(groups)}


def dedupe_slots(points: Iterable[QuantizedCount]) -> List[QuantizedCount]:
    """Keep the first point per grid instant, sorted by time."""
    unique: Dict[datetime, QuantizedCount] = {}
    for point in points:
        unique.setdefault(point.timestamp, point)
    return sorted(unique.values(), key=lambda point: point.timestamp)


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def __init__(self, catalog: LocationLookup, tz: tzinfo, launch_day: datetime) -> None:
        self.catalog = catalog
        self.tz = tz
        self.launch_day = launch_day

    def aggregate(
        self,
        records: Iterable[VehicleCount],
        now: Optional[datetime] = None,
    ) -> Snapshot:
        cutoff = serving_cutoff(self.launch_day, self.tz, now)
        grouped = group_by_intersection(quantize(records))

        intersections: Dict[str, IntersectionAggregate] = {}
        for name, points in grouped.items():
            location = self.catalog.location_for(name)
            intersections[name] = IntersectionAggregate(
                location=location,
                data=self.organize_counts(name, points, cutoff),
            )
        return Snapshot(intersections=MappingProxyType(intersections))

    def organize_counts(
        self,
        intersection: str,
        points: Iterable[QuantizedCount],
        cutoff: datetime,
    ) -> DailyCounts:
        recent = (point for point in points if point.timestamp >= cutoff)
        by_day: Dict[date, List[int]] = {}
        for point in dedupe_slots(recent):
            by_day.setdefault(local_day(point.timestamp, self.tz), []).append(point.vehicle_count)

        # The most recent day is still filling up and is exempt.
        for day in list(by_day)[:-1]:
            expected = slots_in_day(day, self.tz)
            if len(by_day[day]) != expected:
                raise IncompleteDayError(intersection, day, len(by_day[day]), expected)

        return MappingProxyType({day: tuple(counts) for day, counts in by_day.items()})
